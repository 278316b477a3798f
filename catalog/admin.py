"""Admin registration for catalog models."""

from django.contrib import admin

from .models import Product, ProductImage, ProductVariant


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 0
    fields = ("url", "sort_order")
    ordering = ("sort_order",)


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ("sku", "size", "color", "price_delta", "stock")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "store", "base_price", "is_active", "updated_at")
    search_fields = ("name", "store__slug")
    list_filter = ("is_active", "store")
    list_select_related = ("store",)
    inlines = [ProductVariantInline, ProductImageInline]


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ("product", "sku", "size", "color", "price_delta", "stock")
    search_fields = ("sku", "product__name")
    raw_id_fields = ("product",)
