"""Base model for document store responses.

Store results inherit from :class:`StoreResultModel`, which provides:

* ``alias_generator=to_camel`` so camelCase driver keys
  (``insertedIds``, ``upsertedId``) map to snake_case fields, while
  snake_case keys are accepted as well.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class StoreResultModel(BaseModel):
    """Base for document store result models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original store response dict."""

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        """Stash the raw payload and drop ``None`` values so defaults apply."""
        if not isinstance(values, dict):
            return values
        cleaned = {k: v for k, v in values.items() if v is not None}
        # Keep the caller's raw= when constructing with kwargs.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
