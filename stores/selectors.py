"""Read-only store lookups."""

from typing import Optional

from .models import Store


def get_approved_store(slug: str) -> Optional[Store]:
    """Return the approved store for ``slug``, or None if missing or not approved."""

    try:
        return Store.objects.get(slug=slug, status=Store.STATUS_APPROVED)
    except Store.DoesNotExist:
        return None
