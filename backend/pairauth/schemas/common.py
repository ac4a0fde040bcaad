"""Common Marshmallow schemas shared across resources."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, fields, post_load, validate


class PaginationQuerySchema(Schema):
    """Validate ``page``/``per_page`` query parameters with configurable defaults."""

    class Meta:
        unknown = EXCLUDE

    def __init__(self, *, default_per_page: int = 20, max_per_page: int = 100, **kwargs: Any) -> None:
        self._default_per_page = default_per_page
        self._max_per_page = max_per_page
        super().__init__(**kwargs)

    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    per_page = fields.Integer(validate=validate.Range(min=1))

    @post_load
    def apply_defaults(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        per_page = data.get("per_page", self._default_per_page)
        data["per_page"] = min(max(per_page, 1), self._max_per_page)
        data.setdefault("page", 1)
        return data
