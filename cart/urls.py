"""Cart URL routes (v1), scoped by store slug."""

from django.urls import path

from .views import CartAddItemView, CartDetailView, CartItemView, MergeGuestCartView

app_name = "cart"

urlpatterns = [
    path("<slug:store_slug>/", CartDetailView.as_view(), name="cart-detail"),
    path("<slug:store_slug>/items/", CartAddItemView.as_view(), name="cart-add-item"),
    path("<slug:store_slug>/items/<uuid:item_id>/", CartItemView.as_view(), name="cart-item"),
    path("<slug:store_slug>/merge/", MergeGuestCartView.as_view(), name="cart-merge-guest"),
]
