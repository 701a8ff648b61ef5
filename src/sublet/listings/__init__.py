"""Listing models; matching and mutation live in ``matcher`` and ``service``."""

from .models import (
    Listing,
    ListingDraft,
    ListingFilter,
    ListingPage,
    ListingPatch,
    RoomType,
    SearchConstraint,
    duration_days,
)

__all__ = [
    "Listing",
    "ListingDraft",
    "ListingFilter",
    "ListingPage",
    "ListingPatch",
    "RoomType",
    "SearchConstraint",
    "duration_days",
]
