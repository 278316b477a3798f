"""URL routes for checkout (v1)."""

from django.urls import path

from .views import CheckoutStartView

app_name = "orders"

urlpatterns = [
    path("<slug:store_slug>/start/", CheckoutStartView.as_view(), name="checkout-start"),
]
