"""
Public shop listing.

Merges the visible shops of a category from every store, ranks them and
pages the result. The ranking is a total order: after the documented sort
keys, ties fall back to (store, id), so repeated calls over unchanged data
page identically.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from django.conf import settings

from apps.shops.geo import distance_km
from apps.shops.models import Category
from apps.shops.plans import parse_slot

from . import repository
from .exceptions import CategoryNotFoundError, ShopValidationError
from .records import ShopRecord


SORT_NEARBY = 'nearby'
SORT_POPULAR = 'popular'
SORT_RATED = 'rated'
SORT_TYPES = (SORT_NEARBY, SORT_POPULAR, SORT_RATED)


@dataclass
class ListedShop:
    record: ShopRecord
    distance: float
    priority_rank: int


@dataclass
class PagedResult:
    results: List[ListedShop]
    page: int
    page_size: int
    total: int
    total_pages: int
    has_more: bool


def _identity(item: ListedShop):
    return (item.record.ref.store, item.record.ref.id)


def _nearby_key(item: ListedShop):
    return (item.distance, -item.priority_rank) + _identity(item)


def _popular_key(item: ListedShop):
    return (-item.record.visitor_count, -item.priority_rank) + _identity(item)


def _rated_key(item: ListedShop):
    return (
        -(item.record.rating or 0.0),
        -item.record.review_count,
        -item.priority_rank,
    ) + _identity(item)


SORT_KEYS = {
    SORT_NEARBY: _nearby_key,
    SORT_POPULAR: _popular_key,
    SORT_RATED: _rated_key,
}


def rank_shops(
    records: List[ShopRecord],
    *,
    sort_type: str = SORT_NEARBY,
    latitude=None,
    longitude=None
) -> List[ListedShop]:
    """
    Attach distance and priority to each record and sort.

    Distance is 0 when either the caller or the shop has no coordinates.
    Priority is the shop's explicit rank, else its plan's rank.

    Raises:
        ShopValidationError: If sort_type is unknown
    """
    try:
        key = SORT_KEYS[sort_type]
    except KeyError:
        raise ShopValidationError(f"Unknown sort type '{sort_type}', expected one of {', '.join(SORT_TYPES)}")

    items = [
        ListedShop(
            record=record,
            distance=distance_km(latitude, longitude, record.latitude, record.longitude),
            priority_rank=record.effective_priority,
        )
        for record in records
    ]
    items.sort(key=key)
    return items


def _page_params(page, page_size):
    try:
        page = int(page)
        page_size = int(page_size)
    except (TypeError, ValueError):
        raise ShopValidationError("page and page_size must be integers")
    if page < 1:
        raise ShopValidationError("page must be 1 or greater")
    if page_size < 1:
        raise ShopValidationError("page_size must be 1 or greater")
    return page, min(page_size, settings.SHOP_LISTING_MAX_PAGE_SIZE)


def paginate(items: List[ListedShop], *, page: int, page_size: int) -> PagedResult:
    total = len(items)
    total_pages = math.ceil(total / page_size) if total else 0
    start = (page - 1) * page_size
    return PagedResult(
        results=items[start:start + page_size],
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
        has_more=page < total_pages,
    )


def _resolve_category(category) -> Category:
    if isinstance(category, Category):
        return category
    try:
        return Category.objects.get(slug=category, is_active=True)
    except Category.DoesNotExist:
        raise CategoryNotFoundError(f"Category '{category}' not found")


def list_shops(
    *,
    category,
    sort_type: str = SORT_NEARBY,
    latitude=None,
    longitude=None,
    page: int = 1,
    page_size: Optional[int] = None
) -> PagedResult:
    """
    One page of the visible shops in a category.

    Args:
        category: Category slug or instance
        sort_type: 'nearby', 'popular' or 'rated'
        latitude: Caller latitude, optional
        longitude: Caller longitude, optional
        page: 1-based page number
        page_size: Defaults to SHOP_LISTING_PAGE_SIZE, capped at SHOP_LISTING_MAX_PAGE_SIZE

    Returns:
        PagedResult of ListedShop

    Raises:
        CategoryNotFoundError: If the slug names no active category
        ShopValidationError: If sort type or paging are invalid
    """
    page, page_size = _page_params(page, page_size or settings.SHOP_LISTING_PAGE_SIZE)
    category = _resolve_category(category)
    records = repository.find_by_category(
        category=category,
        payment_filter=repository.PaymentFilter.VISIBLE,
    )
    ranked = rank_shops(records, sort_type=sort_type, latitude=latitude, longitude=longitude)
    return paginate(ranked, page=page, page_size=page_size)


def _slot_key(item: ListedShop):
    return (-item.priority_rank,) + _identity(item)


def slot_shops(*, slot, limit: Optional[int] = None) -> List[ListedShop]:
    """
    Visible shops eligible for a display slot, highest priority first.

    Args:
        slot: Slot name, e.g. 'HERO' or 'left_rail'
        limit: Defaults to SHOP_LISTING_PAGE_SIZE, capped at SHOP_LISTING_MAX_PAGE_SIZE

    Raises:
        ShopValidationError: If the slot or limit are invalid
    """
    slot = parse_slot(slot)
    _, limit = _page_params(1, limit or settings.SHOP_LISTING_PAGE_SIZE)
    items = [
        ListedShop(record=record, distance=0.0, priority_rank=record.effective_priority)
        for record in repository.find_by_slot(slot)
    ]
    items.sort(key=_slot_key)
    return items[:limit]


def nearest_shop_per_category(*, latitude, longitude) -> Dict[str, repository.NearestShop]:
    """Distance to, and popularity of, the closest visible shop in each active category."""
    if latitude in (None, '') or longitude in (None, ''):
        raise ShopValidationError("latitude and longitude are required")
    try:
        latitude, longitude = float(latitude), float(longitude)
    except (TypeError, ValueError):
        raise ShopValidationError("Invalid coordinates")
    return repository.find_nearest_per_category(latitude=latitude, longitude=longitude)
