"""
Shared Models - tagged parse results for persisted payloads.

Anything read back from the store was written by some context we do not
control, so decoding never raises: it returns a ParseResult that callers
branch on.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import ValidationError

from shopcore.errors import PARSE_EMPTY, PARSE_INVALID_JSON, PARSE_SCHEMA_MISMATCH

T = TypeVar("T")


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Success carries `value`, failure carries `error` (a short reason)."""
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "ParseResult[T]":
        return cls(ok=False, error=error)


def parse_json_payload(raw: Optional[str], build: Callable[[Any], T]) -> ParseResult[T]:
    """
    Decode `raw` as JSON and hand the result to `build`.

    `build` validates the decoded shape (usually via pydantic) and may raise
    ValidationError, ValueError or TypeError; those become failures.
    """
    if raw is None or str(raw).strip() == "":
        return ParseResult.failure(PARSE_EMPTY)

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        return ParseResult.failure(f"{PARSE_INVALID_JSON}: {e}")

    try:
        return ParseResult.success(build(data))
    except ValidationError as e:
        return ParseResult.failure(f"{PARSE_SCHEMA_MISMATCH}: {e.error_count()} error(s)")
    except (ValueError, TypeError) as e:
        return ParseResult.failure(f"{PARSE_SCHEMA_MISMATCH}: {e}")
