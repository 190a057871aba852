"""Configuration for dataflow blocks.

``BlockOptions`` is the single source of truth for block settings, validated by
pydantic. ``resolve_block_options`` merges layers with the precedence
defaults < environment (``ATTEMPT_*``, with ``.env`` loaded once) < overrides.

Example:
    options = resolve_block_options({"max_degree_of_parallelism": 4})
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from attempt.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_PREFIX = "ATTEMPT_"

_UNBOUNDED_MARKERS = {"", "-1", "none", "unbounded"}

_DOTENV_LOADED = False


class BlockOptions(BaseModel):
    """Settings shared by every dataflow block."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    #: Maximum number of items buffered for processing; None means unbounded.
    bounded_capacity: int | None = Field(default=None, ge=1)
    #: How many items may be transformed at once. Output order is unaffected.
    max_degree_of_parallelism: int = Field(default=1, ge=1)

    @field_validator("bounded_capacity", mode="before")
    @classmethod
    def normalize_unbounded(cls, v: Any) -> Any:
        """Map -1 and "none"/"unbounded" spellings to None."""
        if v == -1:
            return None
        if isinstance(v, str) and v.strip().lower() in _UNBOUNDED_MARKERS:
            return None
        return v


def _load_dotenv_once() -> None:
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    from dotenv import load_dotenv

    load_dotenv()
    _DOTENV_LOADED = True


def load_env() -> dict[str, Any]:
    """Read ``ATTEMPT_*`` variables that name a ``BlockOptions`` field.

    Values are returned as raw strings; pydantic performs the coercion.
    """
    config: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in BlockOptions.model_fields:
            config[field_name] = value
    return config


def resolve_block_options(overrides: Mapping[str, Any] | None = None) -> BlockOptions:
    """Resolve block options from defaults, environment, and overrides.

    Raises:
        ConfigurationError: If a layer supplies an invalid or unknown setting.
    """
    _load_dotenv_once()
    merged = {**load_env(), **(overrides or {})}
    try:
        return BlockOptions.model_validate(merged)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(part) for part in err.get("loc", ())) or "options"
        msg = err.get("msg")
        if msg and msg.startswith("Value error, "):
            msg = msg[13:]
        hint = None
        if field in BlockOptions.model_fields:
            hint = f"Check {ENV_PREFIX}{field.upper()} or the '{field}' override."
        raise ConfigurationError(
            f"Invalid block option '{field}': {msg}", hint=hint
        ) from e
