"""URL configuration for the storefront cart API."""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from .auth import RefreshView, SignInView
from .health import health

admin.site.site_header = "Storefront Admin"
admin.site.index_title = "Admin"

urlpatterns = [
    path("admin/", admin.site.urls),
    # API schema and Swagger UI
    path("api/schema/", SpectacularAPIView.as_view(), name="api-schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="api-schema"), name="api-docs"),
    # Healthcheck
    path("health/", health, name="health"),
    # Versioned v1 routes only
    path("api/v1/auth/token/", SignInView.as_view(), name="token-obtain"),
    path("api/v1/auth/token/refresh/", RefreshView.as_view(), name="token-refresh"),
    path("api/v1/cart/", include("cart.urls")),
    path("api/v1/checkout/", include("orders.urls")),
]
