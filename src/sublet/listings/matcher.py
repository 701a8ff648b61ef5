"""
Availability matching.

Turns a caller's search constraints into a repository filter and a page of
listings, newest first.
"""

import math
from typing import Any, Mapping, Union

from loguru import logger

from ..errors import InvalidInput, NotFound
from ..identifiers import is_valid_id
from ..storage.repositories import ListingRepository
from ..validation import parse_model
from .models import MAX_PAGE, MAX_PAGE_SIZE, Listing, ListingFilter, ListingPage, SearchConstraint


def build_filter(constraint: SearchConstraint) -> ListingFilter:
    """
    Map search constraints onto a repository filter.

    A listing matches the date window when it overlaps it at all:
    ``listing.start <= window.end and listing.end >= window.start``.
    """
    return ListingFilter(
        available_from=constraint.start_date,
        available_until=constraint.end_date,
        min_price=constraint.min_price,
        max_price=constraint.max_price,
        location=constraint.location,
    )


def load_listing(listings: ListingRepository, listing_id: str) -> Listing:
    """Fetch a listing, treating malformed ids the same as missing records."""
    if not is_valid_id(listing_id):
        raise NotFound("Listing not found")
    listing = listings.get_by_id(listing_id)
    if listing is None:
        raise NotFound("Listing not found")
    return listing


def total_pages(total_count: int, page_size: int) -> int:
    return math.ceil(total_count / page_size)


class AvailabilityMatcher:
    """Searches listings by date window, price range and location."""

    def __init__(self, listings: ListingRepository):
        self.listings = listings

    def match(self, constraint: Union[SearchConstraint, Mapping[str, Any]]) -> ListingPage:
        """
        Return one page of listings satisfying every given filter.

        Args:
            constraint: Validated constraint, or raw fields to validate

        Raises:
            InvalidInput: If page/page_size are out of range or a range is inverted
        """
        if not isinstance(constraint, SearchConstraint):
            constraint = parse_model(SearchConstraint, constraint)
        if constraint.page < 1 or constraint.page_size < 1:
            raise InvalidInput("page and pageSize must be at least 1")
        if constraint.page > MAX_PAGE or constraint.page_size > MAX_PAGE_SIZE:
            raise InvalidInput(f"page must be at most {MAX_PAGE} and pageSize at most {MAX_PAGE_SIZE}")

        skip = (constraint.page - 1) * constraint.page_size
        items, total_count = self.listings.find(
            build_filter(constraint), skip=skip, limit=constraint.page_size
        )

        logger.debug(
            f"Listing search matched {total_count} (page {constraint.page}, size {constraint.page_size})"
        )
        return ListingPage(
            items=items,
            total_count=total_count,
            page=constraint.page,
            page_size=constraint.page_size,
            total_pages=total_pages(total_count, constraint.page_size),
        )

    def get_by_id(self, listing_id: str) -> Listing:
        """
        Look up one listing.

        Raises:
            NotFound: If the id is malformed or no listing exists
        """
        return load_listing(self.listings, listing_id)
