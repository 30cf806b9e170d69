# src/turbodash_kpi/adapters/schemas/http/base.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""
Base HTTP Schema (Adapters Layer)

Purpose:
    Canonical Pydantic base for all adapter-layer HTTP schemas.
    Enforces strict config, camelCase wire names, and OpenAPI hygiene.

Layer: adapters/schemas/http

Notes:
    - Transport-facing only. Application DTOs must not import from this module.
    - Fields are declared in snake_case and exposed as camelCase aliases;
      inputs accept either spelling.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseHTTPSchema(BaseModel):
    """Base class for all HTTP-facing schemas.

    Attributes:
        model_config: Pydantic v2 `ConfigDict` with strict validation and
            camelCase aliases.
    """

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
        ser_json_inf_nan="null",
    )

    def model_dump_http(self, **kwargs: Any) -> dict[str, Any]:
        """Return a JSON-serializable dict with camelCase keys.

        Args:
            **kwargs: Optional Pydantic dump settings (e.g., ``exclude_none=True``).

        Returns:
            dict[str, Any]: Fully JSON-serializable representation.
        """
        return self.model_dump(mode="json", by_alias=True, **kwargs)


__all__ = ["BaseHTTPSchema"]
