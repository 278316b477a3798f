"""JWT sign-in and refresh endpoints.

Signing in is what precedes a guest-to-user cart merge: the client keeps
sending its guest token alongside the new bearer token.
"""

import logging

from drf_spectacular.utils import extend_schema
from rest_framework.exceptions import APIException
from rest_framework.throttling import ScopedRateThrottle
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

logger = logging.getLogger("shop.auth")


def log_auth_event(event: str, request, *, status: str) -> None:
    logger.info(
        event,
        extra={
            "event": event,
            "status": status,
            "ip": request.META.get("REMOTE_ADDR"),
        },
    )


class SignInView(TokenObtainPairView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "signin"

    @extend_schema(tags=["Auth Endpoints"], summary="Obtain access and refresh tokens")
    def post(self, request, *args, **kwargs):
        try:
            resp = super().post(request, *args, **kwargs)
        except APIException:
            log_auth_event("auth.signin", request, status="failed")
            raise
        log_auth_event("auth.signin", request, status="success")
        return resp


class RefreshView(TokenRefreshView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "token_refresh"

    @extend_schema(tags=["Auth Endpoints"], summary="Refresh an access token")
    def post(self, request, *args, **kwargs):
        try:
            resp = super().post(request, *args, **kwargs)
        except APIException:
            log_auth_event("auth.token_refresh", request, status="failed")
            raise
        log_auth_event("auth.token_refresh", request, status="success")
        return resp
