"""
OpsLedger Backend — Offset Pagination
=======================================

What:  Page/take pagination shared by the employee, project and invoice
       listings.
Why:   The dashboards page through small, filterable tables and need the
       total count for page controls, so offset pagination with a COUNT is
       the natural fit here.

Semantics:
    skip = (page - 1) * take, applied only when both are given and
    skip < total (a page past the end returns the first page).
    PageInfo:
        total        = matching rows, or 0 when the returned page is empty
        last_page    = ceil(total / take), or 1/0 without take
        current_page = page, or 1 when page > last_page (0 when empty and
                       no page was requested)
        per_page     = take, or total without take
"""

import math
from typing import Any, Iterable, List, Optional, Tuple

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ValidationError
from app.schemas.common import PageInfo

MAX_TAKE = 100


def compute_skip(page: Optional[int], take: Optional[int], total: int) -> Optional[int]:
    if not page or not take:
        return None
    skip = (page - 1) * take
    return skip if skip < total else None


def build_page_info(
    page: Optional[int],
    take: Optional[int],
    total_count: int,
    returned: int,
) -> PageInfo:
    total = total_count if returned > 0 else 0
    if take:
        last_page = math.ceil(total / take)
    else:
        last_page = 1 if total > 0 else 0

    if page:
        current_page = 1 if page > last_page else page
    else:
        current_page = 1 if total > 0 else 0

    return PageInfo(
        total=total,
        current_page=current_page,
        last_page=last_page,
        per_page=take if take else total,
    )


async def paginate(
    db: AsyncSession,
    query: Select,
    page: Optional[int],
    take: Optional[int],
) -> Tuple[List[Any], PageInfo]:
    """
    Count the filtered query, then fetch one page of it.

    The count runs over the query without ordering/loader options; the page
    query keeps both.
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total_count = (await db.execute(count_query)).scalar_one()

    skip = compute_skip(page, take, total_count)
    page_query = query
    if skip:
        page_query = page_query.offset(skip)
    if take:
        page_query = page_query.limit(take)

    rows = list((await db.execute(page_query)).scalars().unique().all())
    return rows, build_page_info(page, take, total_count, len(rows))


def validate_order_field(field: Optional[str], allowed: Iterable[str]) -> Optional[str]:
    """Reject an `order_by_field` the listing does not know how to sort by."""
    allowed = list(allowed)
    if field is not None and field not in allowed:
        raise ValidationError(
            message=f"Cannot order by '{field}'. Allowed fields: {', '.join(allowed)}.",
            field="order_by_field",
        )
    return field
