"""Resolve who a cart belongs to for the current request.

An actor is either an authenticated user or an anonymous guest identified
by an opaque client-held token. A signed-in user who still sends a guest
token keeps it as ``UserActor.guest_token`` so the guest cart can be
merged; it never changes the user's identity.

This module is also the only place that knows how an actor maps onto the
nullable ``Cart.user`` / ``Cart.guest_id`` pair.
"""

import hashlib
import uuid
from dataclasses import dataclass
from typing import Optional, Union

from django.conf import settings

from .exceptions import ActorRequired

_REQUEST_ATTR = "_cart_actor"

# Width of the Cart.guest_id and Order.guest_id columns; a sha256 hex digest fits exactly.
STORED_GUEST_ID_LENGTH = 64


@dataclass(frozen=True)
class UserActor:
    user_id: int
    guest_token: Optional[str] = None


@dataclass(frozen=True)
class GuestActor:
    guest_id: str


Actor = Union[UserActor, GuestActor]


@dataclass(frozen=True)
class ResolvedActor:
    actor: Actor
    minted: bool = False

    @property
    def guest_token(self) -> Optional[str]:
        if isinstance(self.actor, GuestActor):
            return self.actor.guest_id
        return None


def guest_header_name() -> str:
    return getattr(settings, "CART_GUEST_HEADER", "X-Guest-Id")


def normalize_guest_token(raw) -> Optional[str]:
    """Return the stripped token, None when empty.

    Tokens are opaque; only emptiness is checked. See ``stored_guest_id``
    for how tokens of any length fit the column.
    """

    if raw is None:
        return None
    token = str(raw).strip()
    if not token:
        return None
    return token


def stored_guest_id(token: str) -> str:
    """Column value for a guest token.

    Tokens that fit are stored as is; longer ones as their sha256 hex digest.
    """

    if len(token) <= STORED_GUEST_ID_LENGTH:
        return token
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def mint_guest_token() -> str:
    return uuid.uuid4().hex


def _read_guest_token(request) -> Optional[str]:
    raw = request.headers.get(guest_header_name())
    if not raw:
        query_params = getattr(request, "query_params", request.GET)
        raw = query_params.get(getattr(settings, "CART_GUEST_QUERY_PARAM", "guest_id"))
    return normalize_guest_token(raw)


def resolve_actor(request, *, mint: bool = True) -> ResolvedActor:
    """Resolve the actor once per request and reuse it afterwards.

    Unauthenticated callers without a token get a freshly minted one when
    ``mint`` is true; otherwise ActorRequired is raised.
    """

    cached = getattr(request, _REQUEST_ATTR, None)
    if cached is not None:
        return cached

    token = _read_guest_token(request)
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        resolved = ResolvedActor(actor=UserActor(user_id=user.pk, guest_token=token))
    elif token:
        resolved = ResolvedActor(actor=GuestActor(guest_id=token))
    elif mint:
        resolved = ResolvedActor(actor=GuestActor(guest_id=mint_guest_token()), minted=True)
    else:
        raise ActorRequired()

    setattr(request, _REQUEST_ATTR, resolved)
    return resolved


def owner_lookup(actor: Actor) -> dict:
    """Queryset filter selecting carts owned by ``actor``."""

    if isinstance(actor, UserActor):
        return {"user_id": actor.user_id}
    if isinstance(actor, GuestActor):
        return {"guest_id": stored_guest_id(actor.guest_id)}
    raise TypeError(f"Unknown actor type: {type(actor).__name__}")


def owner_fields(actor: Actor) -> dict:
    """Column values for a cart row owned by ``actor``."""

    if isinstance(actor, UserActor):
        return {"user_id": actor.user_id, "guest_id": None}
    if isinstance(actor, GuestActor):
        return {"user_id": None, "guest_id": stored_guest_id(actor.guest_id)}
    raise TypeError(f"Unknown actor type: {type(actor).__name__}")


def log_context(actor: Actor) -> dict:
    """Logging extras for ``actor``; guest tokens are truncated."""

    if isinstance(actor, UserActor):
        return {"user_id": actor.user_id, "guest": False}
    return {"guest_ref": actor.guest_id[:8], "guest": True}


def get_resolved_actor(request) -> Optional[ResolvedActor]:
    """Return the actor already resolved for ``request``, without resolving."""

    return getattr(request, _REQUEST_ATTR, None)
