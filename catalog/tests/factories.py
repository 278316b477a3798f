from decimal import Decimal

import factory
from catalog.models import Product, ProductImage, ProductVariant
from factory import Faker
from factory.django import DjangoModelFactory


class ProductFactory(DjangoModelFactory):
    class Meta:
        model = Product

    store = factory.SubFactory("stores.tests.factories.StoreFactory")
    name = Faker("sentence", nb_words=3)
    description = Faker("paragraph")
    base_price = Decimal("100.00")
    is_active = True


class ProductVariantFactory(DjangoModelFactory):
    class Meta:
        model = ProductVariant

    product = factory.SubFactory(ProductFactory)
    sku = factory.Sequence(lambda n: f"SKU-{n:05d}")
    size = "M"
    color = "Black"
    price_delta = Decimal("0.00")
    stock = 10


class ProductImageFactory(DjangoModelFactory):
    class Meta:
        model = ProductImage

    product = factory.SubFactory(ProductFactory)
    url = Faker("image_url")
    sort_order = 0
