"""DRF serializers for checkout."""

from rest_framework import serializers


class ShippingSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    phone = serializers.CharField(max_length=32)
    address1 = serializers.CharField(max_length=200)
    address2 = serializers.CharField(max_length=200, required=False, allow_blank=True, allow_null=True, default=None)
    city = serializers.CharField(max_length=120)
    state = serializers.CharField(max_length=120)
    postal_code = serializers.CharField(max_length=20)
    country = serializers.CharField(min_length=2, max_length=2, default="MX")

    def validate_address2(self, value):
        return value or None


class StartCheckoutSerializer(serializers.Serializer):
    """Write serializer for starting checkout on the caller's active cart."""

    customer_email = serializers.EmailField()
    shipping = ShippingSerializer()


class CheckoutStartedSerializer(serializers.Serializer):
    """Read serializer returned once an order is created."""

    order_id = serializers.UUIDField(source="id")
    status = serializers.CharField()
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)
    total = serializers.DecimalField(max_digits=14, decimal_places=2)
    currency = serializers.CharField()
