"""Listing search: translate query-string filters into a property query.

Every supplied predicate is AND-ed onto the base ``approved + active``
condition, so each returned row satisfies all of them.
"""

import json
import logging
import math
from dataclasses import dataclass, field

from sqlalchemy import Select, Text, and_, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.domain.enums import PropertyStatus, SortBy
from solvestay.domain.models import Property

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50
# A bedrooms filter value of 4 means "4 or more"
BEDROOMS_OR_MORE = 4


@dataclass
class ListingFilters:
    q: str | None = None
    city: str | None = None
    property_type: str | None = None
    listing_type: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    bedrooms: list[int] = field(default_factory=list)
    furnishing: str | None = None
    amenities: list[str] = field(default_factory=list)
    sort_by: str = SortBy.NEWEST.value
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        self.page = max(1, self.page or 1)
        self.limit = min(max(1, self.limit or DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _given(value: str | None) -> bool:
    return bool(value) and value != "all"


def parse_int_list(raw: str | None) -> list[int]:
    """Parse ``"1,2,4"`` into ``[1, 2, 4]``, ignoring junk entries."""
    if not raw:
        return []
    values = []
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit():
            values.append(int(part))
    return values


def parse_str_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def build_conditions(filters: ListingFilters) -> list:
    conditions = [
        Property.status == PropertyStatus.APPROVED.value,
        Property.is_active.is_(True),
    ]

    if filters.q:
        pattern = f"%{filters.q.strip()}%"
        conditions.append(
            or_(
                Property.title.ilike(pattern),
                Property.description.ilike(pattern),
                Property.address.ilike(pattern),
                Property.locality.ilike(pattern),
            )
        )

    if _given(filters.city):
        conditions.append(Property.city == filters.city)
    if _given(filters.property_type):
        conditions.append(Property.property_type == filters.property_type)
    if _given(filters.listing_type):
        conditions.append(Property.listing_type == filters.listing_type)
    if _given(filters.furnishing):
        conditions.append(Property.furnishing == filters.furnishing)

    if filters.min_price is not None:
        conditions.append(Property.price >= filters.min_price)
    if filters.max_price is not None:
        conditions.append(Property.price <= filters.max_price)

    if filters.bedrooms:
        exact = sorted({b for b in filters.bedrooms if b < BEDROOMS_OR_MORE})
        bedroom_clauses = []
        if exact:
            bedroom_clauses.append(Property.bedrooms.in_(exact))
        if any(b >= BEDROOMS_OR_MORE for b in filters.bedrooms):
            bedroom_clauses.append(Property.bedrooms >= BEDROOMS_OR_MORE)
        conditions.append(or_(*bedroom_clauses))

    # amenities is a JSON list; match each requested entry as a quoted JSON string
    for amenity in filters.amenities:
        conditions.append(
            cast(Property.amenities, Text).contains(json.dumps(amenity), autoescape=True)
        )

    return conditions


def _ordering(sort_by: str) -> list:
    if sort_by == SortBy.PRICE_LOW.value:
        return [Property.price.asc(), Property.created_at.desc()]
    if sort_by == SortBy.PRICE_HIGH.value:
        return [Property.price.desc(), Property.created_at.desc()]
    if sort_by == SortBy.POPULAR.value:
        return [Property.views_count.desc(), Property.created_at.desc()]
    return [Property.created_at.desc()]


def build_listing_query(filters: ListingFilters) -> Select:
    """Filtered, ordered, unpaginated listing query."""
    return (
        select(Property)
        .where(and_(*build_conditions(filters)))
        .order_by(*_ordering(filters.sort_by))
    )


async def search_listings(db: AsyncSession, filters: ListingFilters) -> dict:
    query = build_listing_query(filters)

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(query.offset(filters.offset).limit(filters.limit))
    properties = result.scalars().all()

    total_pages = math.ceil(total / filters.limit) if total else 0
    logger.debug("Listing search matched %d rows (page %d)", total, filters.page)

    return {
        "properties": properties,
        "total": total,
        "page": filters.page,
        "limit": filters.limit,
        "total_pages": total_pages,
    }
