"""Cart serializers for read and write operations."""

from django.conf import settings
from rest_framework import serializers

MAX_ITEM_QUANTITY = getattr(settings, "CART_MAX_ITEM_QUANTITY", 99)


class CartLineSerializer(serializers.Serializer):
    """Read serializer for a presented cart line."""

    id = serializers.UUIDField()
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(allow_null=True)
    name = serializers.CharField()
    sku = serializers.CharField(allow_null=True)
    size = serializers.CharField(allow_null=True)
    color = serializers.CharField(allow_null=True)
    image_url = serializers.CharField(allow_null=True)
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2)


class CartReadSerializer(serializers.Serializer):
    """Read serializer for a presented cart (see ``presenters.build_cart_view``)."""

    id = serializers.UUIDField(allow_null=True)
    store = serializers.CharField()
    guest_id = serializers.CharField(allow_null=True)
    items_count = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)
    items = CartLineSerializer(many=True)


class AddItemSerializer(serializers.Serializer):
    """Write serializer for adding an item to the cart."""

    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(allow_null=True, default=None)
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_ITEM_QUANTITY, default=1)


class UpdateItemQuantitySerializer(serializers.Serializer):
    """Write serializer for setting a line quantity. Zero removes the line."""

    quantity = serializers.IntegerField(min_value=0, max_value=MAX_ITEM_QUANTITY)
