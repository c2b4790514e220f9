"""Common Marshmallow schemas shared across resources."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, fields, post_load


def _lenient_int(raw: Any, default: int) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


class PaginationQuerySchema(Schema):
    """Parse ``page``/``limit`` query parameters leniently.

    Admin listings never reject a bad page size: a missing, non-numeric or
    non-positive ``limit`` falls back to ``default_limit`` and anything above
    ``max_limit`` is clamped. ``page`` behaves the same with a default of 1.
    """

    class Meta:
        unknown = EXCLUDE

    def __init__(self, *, default_limit: int = 20, max_limit: int = 100, **kwargs: Any) -> None:
        self._default_limit = default_limit
        self._max_limit = max_limit
        super().__init__(**kwargs)

    page = fields.Raw(load_default=None)
    limit = fields.Raw(load_default=None)

    @post_load
    def apply_defaults(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        data["page"] = _lenient_int(data.get("page"), 1)
        data["limit"] = min(_lenient_int(data.get("limit"), self._default_limit), self._max_limit)
        return data


def build_meta(*, total: int, page: int, limit: int) -> dict[str, int]:
    """Return a ``meta`` mapping for paginated responses."""

    return {"total": int(total), "page": int(page), "limit": int(limit)}
