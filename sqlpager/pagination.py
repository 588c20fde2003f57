"""Page arithmetic and the pagination result container."""

from typing import Any

import msgspec
from msgspec import structs

from sqlpager._serialization import encode_json
from sqlpager.assembler import calculate_offset

__all__ = ("Pagination", "calculate_pagination", "total_pages")


class Pagination(msgspec.Struct, frozen=True, kw_only=True):
    """A page of records plus navigation metadata.

    Serialized field names follow the wire format consumers expect, e.g. the
    ``page`` attribute is emitted as ``current_page``.
    """

    has_next: bool
    has_prev: bool
    per_page: int
    next_page: int
    page: int = msgspec.field(name="current_page")
    prev_page: int
    offset: int
    records: Any = None
    total_record: int
    total_page: int
    metadata: Any = None

    def with_metadata(self, metadata: Any) -> "Pagination":
        """Return a copy carrying caller supplied ``metadata``."""
        return structs.replace(self, metadata=metadata)

    def to_dict(self) -> "dict[str, Any]":
        """Return the result as a dictionary keyed by serialized field names."""
        return msgspec.to_builtins(self, enc_hook=str)

    def to_json(self) -> str:
        return encode_json(self)


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed for ``total`` rows. A limit of 0 means a single page."""
    if limit <= 0:
        return 1
    return -(-total // limit)


def calculate_pagination(
    total: int,
    limit: int,
    page: int,
    records: Any = None,
    metadata: Any = None,
) -> Pagination:
    """Compute navigation metadata for ``page`` of a result with ``total`` rows.

    Pages below 1 are treated as page 1. Pages beyond the last page are kept
    as requested, so the metadata describes the page that was asked for even
    when it holds no rows.

    Args:
        total: Number of rows matched by the count query.
        limit: Page size; 0 means all rows on one page.
        page: Requested 1-based page.
        records: The rows of the page.
        metadata: Caller supplied metadata.

    Returns:
        The pagination result.
    """
    page = max(page, 1)
    page_count = total_pages(total, limit)
    has_prev = page > 1
    has_next = page_count > page
    return Pagination(
        has_next=has_next,
        has_prev=has_prev,
        per_page=limit if limit > 0 else total,
        next_page=page + 1 if has_next else page,
        page=page,
        prev_page=page - 1 if has_prev else page,
        offset=calculate_offset(page, limit),
        records=records,
        total_record=total,
        total_page=page_count,
        metadata=metadata,
    )
