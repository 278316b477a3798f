"""Checkout API endpoints."""

from cart.actors import resolve_actor
from cart.views import ERROR_RESPONSE, GUEST_HEADER_PARAMETER, StoreCartAPIView
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import status
from rest_framework.response import Response

from .serializers import CheckoutStartedSerializer, StartCheckoutSerializer
from .services import start_checkout


class CheckoutStartView(StoreCartAPIView):
    """Create a pending-payment order from the caller's active cart.

    Guests must send their token; a new one is never minted here because a
    fresh guest has nothing to check out.
    """

    throttle_scope = "checkout"

    @extend_schema(
        tags=["Checkout"],
        summary="Start checkout",
        description=(
            "Snapshots the caller's active cart into an order awaiting payment and freezes the cart. "
            "Stock is re-validated; payment provider integration happens downstream."
        ),
        request=StartCheckoutSerializer,
        parameters=[GUEST_HEADER_PARAMETER],
        responses={201: CheckoutStartedSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE},
        examples=[
            OpenApiExample(
                "Start",
                value={
                    "customer_email": "ana@example.com",
                    "shipping": {
                        "name": "Ana Pérez",
                        "phone": "+52 55 1234 5678",
                        "address1": "Av. Reforma 123",
                        "address2": None,
                        "city": "CDMX",
                        "state": "CDMX",
                        "postal_code": "06600",
                        "country": "MX",
                    },
                },
                request_only=True,
            ),
            OpenApiExample(
                "Started",
                value={
                    "order_id": "3c9f0b8e-2d4a-4f6b-9e1c-7a5d3b2c1e0f",
                    "status": "pending_payment",
                    "subtotal": "200.00",
                    "total": "200.00",
                    "currency": "MXN",
                },
                response_only=True,
                status_codes=["201"],
            ),
        ],
    )
    def post(self, request, store_slug: str):
        serializer = StartCheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        actor = resolve_actor(request, mint=False).actor
        order = start_checkout(
            store=self.store,
            actor=actor,
            customer_email=serializer.validated_data["customer_email"],
            shipping=serializer.validated_data["shipping"],
        )
        return Response(CheckoutStartedSerializer(order).data, status=status.HTTP_201_CREATED)
