"""Cursor pagination query builder shared by every list endpoint.

Results are ordered newest first by id. ``after_id`` asks for items newer than a
known id (``id > after_id``), ``before_id`` for items older than it
(``id < before_id``). When both are given ``after_id`` wins.
"""
from dataclasses import dataclass, field
from typing import Any, Optional

from polygram.domain.common.errors import ValidationError
from polygram.domain.common.types import is_valid_id


@dataclass(frozen=True)
class CursorParams:
    """Raw client-supplied cursor parameters."""

    before_id: Optional[str] = None
    after_id: Optional[str] = None
    page_size: Optional[int] = None


@dataclass(frozen=True)
class CursorQuery:
    """Pure description of a bounded, filtered, id-ordered page query."""

    limit: int
    id_gt: Optional[str] = None
    id_lt: Optional[str] = None
    descending: bool = True
    filters: dict[str, Any] = field(default_factory=dict)

    def apply(self, stmt, id_column):
        """Apply cursor bounds, ordering and limit to a SQLAlchemy select."""
        if self.id_gt is not None:
            stmt = stmt.where(id_column > self.id_gt)
        elif self.id_lt is not None:
            stmt = stmt.where(id_column < self.id_lt)
        order = id_column.desc() if self.descending else id_column.asc()
        return stmt.order_by(order).limit(self.limit)


def _check_cursor(value: Optional[str], name: str) -> None:
    if value is not None and not is_valid_id(value):
        raise ValidationError(f"Invalid {name}", field=name)


def build_cursor_query(
    params: CursorParams,
    *,
    default_size: int,
    min_size: int = 1,
    max_size: int = 50,
    filters: Optional[dict[str, Any]] = None,
) -> CursorQuery:
    """Validate cursor parameters and build a CursorQuery.

    Raises:
        ValidationError: page_size out of [min_size, max_size] or malformed cursor id.
    """
    _check_cursor(params.before_id, "before_id")
    _check_cursor(params.after_id, "after_id")

    page_size = default_size if params.page_size is None else params.page_size
    if isinstance(page_size, bool) or not isinstance(page_size, int):
        raise ValidationError("page_size must be of type number", field="page_size")
    if page_size < min_size or page_size > max_size:
        raise ValidationError(
            f"page_size must be between {min_size} and {max_size}", field="page_size"
        )

    id_gt = id_lt = None
    if params.after_id:
        id_gt = params.after_id.lower()
    elif params.before_id:
        id_lt = params.before_id.lower()

    active_filters = {k: v for k, v in (filters or {}).items() if v is not None}
    return CursorQuery(limit=page_size, id_gt=id_gt, id_lt=id_lt, filters=active_filters)
