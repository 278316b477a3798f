from decimal import Decimal

import pytest
from catalog.models import ProductVariant
from catalog.tests.factories import ProductFactory, ProductVariantFactory
from django.db import IntegrityError


@pytest.mark.django_db
def test_sku_unique_per_product():
    v = ProductVariantFactory(sku="TEE-M")
    with pytest.raises(IntegrityError):
        ProductVariant.objects.create(product=v.product, sku="TEE-M", stock=1)


@pytest.mark.django_db
def test_null_sku_may_repeat_within_product():
    product = ProductFactory()
    ProductVariant.objects.create(product=product, sku=None, stock=1)
    ProductVariant.objects.create(product=product, sku=None, stock=1)
    assert product.variants.count() == 2


@pytest.mark.django_db
def test_negative_stock_rejected():
    product = ProductFactory()
    with pytest.raises(IntegrityError):
        ProductVariant.objects.create(product=product, sku="NEG", stock=-1)


@pytest.mark.django_db
def test_negative_base_price_rejected():
    with pytest.raises(IntegrityError):
        ProductFactory(base_price=Decimal("-1.00"))
