"""Typed cart failures.

Each carries a stable ``code`` for clients and an HTTP ``status_code``
hint for the API layer. Services raise them; views translate them.
"""


class CartError(Exception):
    """Base class for cart failures scoped to a single request."""

    code = "cart_error"
    status_code = 400
    default_message = "Unable to update cart."

    def __init__(self, message=None, **context):
        super().__init__(message or self.default_message)
        self.context = context

    @property
    def message(self) -> str:
        return str(self.args[0])


class ActorRequired(CartError):
    code = "actor_required"
    default_message = "A signed-in user or a guest token is required."


class ProductNotFound(CartError):
    code = "product_not_found"
    status_code = 404
    default_message = "Product not found."


class VariantRequired(CartError):
    code = "variant_required"
    default_message = "This product requires a variant."


class VariantInvalid(CartError):
    code = "variant_invalid"
    default_message = "Variant does not belong to this product."


class VariantNotApplicable(CartError):
    code = "variant_not_applicable"
    default_message = "This product has no variants."


class OutOfStock(CartError):
    code = "out_of_stock"
    default_message = "Out of stock."


class InsufficientStock(CartError):
    code = "insufficient_stock"
    default_message = "Insufficient stock."


class ItemNotFound(CartError):
    code = "item_not_found"
    status_code = 404
    default_message = "Cart item not found."


class ConcurrencyConflict(CartError):
    """A concurrent writer won a race and its row could not be re-read. Retry the request."""

    code = "concurrency_conflict"
    status_code = 409
    default_message = "The cart was modified concurrently; retry the request."


class InvalidCartTransition(ValueError):
    """Raised when code asks for a status change the lifecycle does not allow.

    A programming error, not a client failure, so it is not a CartError.
    """
