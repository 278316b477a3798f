"""DRF views for cart operations.

Every route is scoped by store slug. The caller's identity (signed-in user
or guest token) is resolved once per request; a guest without a token gets
one minted and echoed back in the guest header.
"""

from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from stores.selectors import get_approved_store

from .actors import GuestActor, get_resolved_actor, guest_header_name, resolve_actor
from .exceptions import ActorRequired, CartError
from .presenters import build_cart_view
from .serializers import AddItemSerializer, CartReadSerializer, UpdateItemQuantitySerializer
from .services import add_item, get_active_cart, merge_guest_into_user, remove_item, update_item

GUEST_HEADER_PARAMETER = OpenApiParameter(
    name="X-Guest-Id",
    location=OpenApiParameter.HEADER,
    required=False,
    description="Opaque guest token. Minted and returned in this header when missing for anonymous callers.",
    type=str,
)

CART_EXAMPLE = OpenApiExample(
    "Cart",
    value={
        "id": "0b7c3f3e-1a52-4f4e-9a7e-3f0f6f1e2a10",
        "store": "acme",
        "guest_id": None,
        "items_count": 2,
        "subtotal": "200.00",
        "items": [
            {
                "id": "8e1d5c0a-4b9f-4f0e-8d7c-1a2b3c4d5e6f",
                "product_id": "5f0e2c1b-7a6d-4e3f-9b8a-0c1d2e3f4a5b",
                "variant_id": None,
                "name": "Canvas Tote",
                "sku": None,
                "size": None,
                "color": None,
                "image_url": "https://cdn.example.com/tote.jpg",
                "quantity": 2,
                "unit_price": "100.00",
                "line_total": "200.00",
            }
        ],
    },
)

ERROR_RESPONSE = inline_serializer(
    name="CartErrorResponse",
    fields={"detail": rf_serializers.CharField(), "code": rf_serializers.CharField()},
)


class StoreCartAPIView(APIView):
    """Base view: resolves the store, maps cart errors, echoes minted guest tokens."""

    permission_classes = [AllowAny]
    throttle_scope = "cart"

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.store = get_approved_store(kwargs["store_slug"])
        if self.store is None:
            raise NotFound("Store not found.")

    def handle_exception(self, exc):
        if isinstance(exc, CartError):
            body = {"detail": exc.message, "code": exc.code}
            body.update({k: v for k, v in exc.context.items() if isinstance(v, (int, str))})
            return Response(body, status=exc.status_code)
        return super().handle_exception(exc)

    def finalize_response(self, request, response, *args, **kwargs):
        response = super().finalize_response(request, response, *args, **kwargs)
        resolved = get_resolved_actor(request)
        if resolved is not None and resolved.minted:
            response[guest_header_name()] = resolved.guest_token
        return response

    def cart_response(self, cart, status_code=status.HTTP_200_OK):
        resolved = resolve_actor(self.request)
        view = build_cart_view(cart, store_slug=self.store.slug, guest_id=resolved.guest_token)
        return Response(CartReadSerializer(view).data, status=status_code)


class CartDetailView(StoreCartAPIView):
    """Return the caller's active cart in a store."""

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Get active cart",
        description=(
            "Returns the caller's active cart with line totals, item count and subtotal. "
            "A signed-in caller that still sends a guest token has the guest cart merged first. "
            "A brand-new guest sees an empty cart; nothing is stored until the first change."
        ),
        parameters=[GUEST_HEADER_PARAMETER],
        responses={200: CartReadSerializer, 404: ERROR_RESPONSE},
        examples=[CART_EXAMPLE],
    )
    def get(self, request, store_slug: str):
        resolved = resolve_actor(request)
        if resolved.minted:
            return self.cart_response(None)
        cart = get_active_cart(store=self.store, actor=resolved.actor)
        return self.cart_response(cart)


class CartAddItemView(StoreCartAPIView):
    """Add a product (and variant) to the cart."""

    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Add item to cart",
        description=(
            "Adds a product to the caller's cart. Products with variants require `variant_id`; "
            "products without variants reject one. Adding an existing line increments it and refreshes "
            "its price and display snapshot."
        ),
        request=AddItemSerializer,
        parameters=[GUEST_HEADER_PARAMETER],
        responses={200: CartReadSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE, 409: ERROR_RESPONSE},
        examples=[
            OpenApiExample(
                "Add",
                value={"product_id": "5f0e2c1b-7a6d-4e3f-9b8a-0c1d2e3f4a5b", "variant_id": None, "quantity": 2},
                request_only=True,
            ),
            OpenApiExample(
                "Insufficient stock",
                value={"detail": "Insufficient stock.", "code": "insufficient_stock", "stock": 1, "requested": 2},
                response_only=True,
                status_codes=["400"],
            ),
        ],
    )
    def post(self, request, store_slug: str):
        serializer = AddItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        actor = resolve_actor(request).actor
        cart = add_item(store=self.store, actor=actor, **serializer.validated_data)
        return self.cart_response(cart)


class CartItemView(StoreCartAPIView):
    """Update or remove a line of the caller's cart."""

    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Update cart item quantity",
        description="Sets a line's quantity; 0 removes the line. Stock is re-validated for variant lines.",
        request=UpdateItemQuantitySerializer,
        parameters=[GUEST_HEADER_PARAMETER],
        responses={200: CartReadSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE},
        examples=[OpenApiExample("Update", value={"quantity": 3}, request_only=True)],
    )
    def patch(self, request, store_slug: str, item_id):
        serializer = UpdateItemQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        actor = resolve_actor(request).actor
        cart = update_item(
            store=self.store, actor=actor, item_id=item_id, quantity=serializer.validated_data["quantity"]
        )
        return self.cart_response(cart)

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Delete cart item",
        description="Removes a line from the caller's cart.",
        parameters=[GUEST_HEADER_PARAMETER],
        responses={200: CartReadSerializer, 404: ERROR_RESPONSE},
    )
    def delete(self, request, store_slug: str, item_id):
        actor = resolve_actor(request).actor
        cart = remove_item(store=self.store, actor=actor, item_id=item_id)
        return self.cart_response(cart)


class MergeGuestCartView(StoreCartAPIView):
    """Authenticated endpoint to merge a guest cart into the user's cart."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Merge guest cart into user cart",
        description=(
            "Folds the guest cart identified by the guest token into the signed-in user's cart. "
            "Repeating the call is a no-op."
        ),
        parameters=[
            OpenApiParameter(
                name="X-Guest-Id",
                location=OpenApiParameter.HEADER,
                required=True,
                description="Guest token held before signing in",
                type=str,
            )
        ],
        request=None,
        responses={200: CartReadSerializer, 400: ERROR_RESPONSE, 401: ERROR_RESPONSE},
        examples=[CART_EXAMPLE],
    )
    def post(self, request, store_slug: str):
        actor = resolve_actor(request, mint=False).actor
        if isinstance(actor, GuestActor) or not actor.guest_token:
            raise ActorRequired(f"Missing {guest_header_name()}.")
        cart = merge_guest_into_user(store=self.store, user_id=actor.user_id, guest_token=actor.guest_token)
        return self.cart_response(cart)
