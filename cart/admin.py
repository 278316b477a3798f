"""Admin registration for cart models.

Provides admin interfaces for `Cart` and `CartItem`, with inline items on
the cart page for support staff.
"""

from django.contrib import admin, messages

from .exceptions import InvalidCartTransition
from .models import Cart, CartItem
from .services import abandon_cart


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    fields = ("product", "variant", "quantity", "unit_price", "product_name", "variant_sku", "created_at")
    readonly_fields = ("created_at",)
    raw_id_fields = ("product", "variant")


class OwnerTypeFilter(admin.SimpleListFilter):
    title = "owner type"
    parameter_name = "owner_type"

    def lookups(self, request, model_admin):
        return (
            ("user", "User carts"),
            ("guest", "Guest carts"),
        )

    def queryset(self, request, queryset):
        value = self.value()
        if value == "user":
            return queryset.filter(user__isnull=False)
        if value == "guest":
            return queryset.filter(user__isnull=True)
        return queryset


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("id", "store", "user", "guest_id", "status", "updated_at", "created_at")
    list_filter = ("status", OwnerTypeFilter, "store")
    search_fields = ("guest_id", "user__username", "user__email", "store__slug")
    ordering = ("-updated_at",)
    readonly_fields = ("created_at", "updated_at")
    inlines = [CartItemInline]
    raw_id_fields = ("user",)
    list_select_related = ("user", "store")
    actions = ["action_abandon_cart"]

    @admin.action(description="Abandon selected active carts")
    def action_abandon_cart(self, request, queryset):
        successes = 0
        skipped = 0
        for cart in queryset:
            try:
                abandon_cart(cart=cart)
                successes += 1
            except InvalidCartTransition:
                skipped += 1
        if successes:
            messages.success(request, f"Abandoned {successes} cart(s).")
        if skipped:
            messages.warning(request, f"Skipped {skipped} cart(s) that were not active.")


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ("id", "cart", "product", "variant", "quantity", "unit_price", "created_at")
    search_fields = ("product_name", "variant_sku", "cart__id")
    raw_id_fields = ("cart", "product", "variant")
    readonly_fields = ("created_at", "updated_at")
