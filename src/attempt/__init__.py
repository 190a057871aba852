"""attempt: wrap exceptions as values and keep pipelines running.

Public API:
    - Try: a wrapper holding either a value or the exception a computation raised
    - create() / create_async(): run a computation and capture its outcome
    - from_value() / from_exception(): wrap an existing value or exception
    - TransformBlock: asyncio dataflow stage that carries Try payloads
    - BlockOptions / resolve_block_options(): dataflow configuration
"""

from __future__ import annotations

import logging

from attempt.config import BlockOptions, resolve_block_options
from attempt.core.result_primitives import Failure, Success
from attempt.dataflow import TransformBlock
from attempt.errors import (
    ArgumentError,
    AttemptError,
    BlockCompletedError,
    ConfigurationError,
    DataflowError,
)
from attempt.factories import create, create_async, from_exception, from_value
from attempt.result import Try

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("attempt")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("attempt").addHandler(logging.NullHandler())

__all__ = [
    "ArgumentError",
    "AttemptError",
    "BlockCompletedError",
    "BlockOptions",
    "ConfigurationError",
    "DataflowError",
    "Failure",
    "Success",
    "TransformBlock",
    "Try",
    "create",
    "create_async",
    "from_exception",
    "from_value",
    "resolve_block_options",
]
