from django.contrib import admin, messages

from .models import Order, OrderItem
from .services import CheckoutError, confirm_payment


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ("product_name", "variant_sku", "quantity", "unit_price", "line_total")
    readonly_fields = fields
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "store", "status", "customer_email", "total", "currency", "paid_at", "created_at")
    list_filter = ("status", "store", "created_at")
    search_fields = ("id", "customer_email", "guest_id", "user__email")
    date_hierarchy = "created_at"
    raw_id_fields = ("user", "cart")
    readonly_fields = ("created_at", "updated_at", "paid_at")
    inlines = [OrderItemInline]
    actions = ["action_confirm_payment"]

    @admin.action(description="Confirm payment for selected orders")
    def action_confirm_payment(self, request, queryset):
        successes = 0
        failures = 0
        for order in queryset:
            try:
                confirm_payment(order)
                successes += 1
            except CheckoutError:
                failures += 1
        if successes:
            messages.success(request, f"Confirmed {successes} order(s).")
        if failures:
            messages.error(request, f"Could not confirm {failures} order(s).")


@admin.register(OrderItem)
class OrderItemAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "product_name", "variant_sku", "quantity", "unit_price")
    search_fields = ("variant_sku", "product_name")
    raw_id_fields = ("order", "product", "variant")
