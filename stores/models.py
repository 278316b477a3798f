"""Store (tenant) models.

Every cart, product and order is scoped to exactly one store.
"""

import uuid

from common.choices import StoreStatus
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Store(TimeStampedModel):
    """A tenant storefront. Only approved stores are shoppable."""

    STATUS_PENDING = StoreStatus.PENDING
    STATUS_APPROVED = StoreStatus.APPROVED
    STATUS_SUSPENDED = StoreStatus.SUSPENDED
    STATUS_CHOICES = StoreStatus.choices

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=120)
    slug = models.SlugField(max_length=140, unique=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover
        return self.slug
