"""
Shared helpers for the Supabase-backed repositories.

- Timestamp (de)serialization between domain UTC datetimes and ISO-8601 text.
- Uniform response checking: PostgREST errors become RepositoryError, unique
  violations (SQLSTATE 23505) become UniqueViolationError.
- Calling the atomic PostgreSQL functions defined in db/schema.sql and mapping
  their JSON results back to domain errors.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from postgrest.exceptions import APIError

from domain.errors import (
    DomainError,
    DuplicateInventoryError,
    ErrorCode,
    InsufficientInventoryError,
    InvalidOrderStatusError,
    NotFoundError,
    RepositoryError,
    ReservationConflictError,
    UniqueViolationError,
)
from domain.time import require_utc_timestamp

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_optional_datetime(value: Any) -> Optional[datetime]:
    return parse_utc_datetime(value) if value is not None else None


def execute(query: Any, operation: str) -> List[Mapping[str, Any]]:
    """
    Execute a PostgREST query builder and return its rows.

    Raises:
        UniqueViolationError: the write hit a unique constraint.
        RepositoryError: any other failure.
    """

    try:
        response = query.execute()
    except APIError as e:
        if str(getattr(e, "code", "")) == UNIQUE_VIOLATION:
            raise UniqueViolationError(operation, e.message) from None
        logger.error("Supabase request failed", extra={"operation": operation, "error": str(e)})
        raise RepositoryError(operation, str(e)) from e

    error = getattr(response, "error", None)
    if error:
        if str(getattr(error, "code", "")) == UNIQUE_VIOLATION:
            raise UniqueViolationError(operation, error)
        logger.error("Supabase request failed", extra={"operation": operation, "error": str(error)})
        raise RepositoryError(operation, error)

    data = getattr(response, "data", None) or []
    if isinstance(data, dict):
        return [data]
    return list(data)


def _domain_error_from_result(result: Mapping[str, Any]) -> Optional[DomainError]:
    code = result.get("error")
    message = result.get("message") or ""

    if code == ErrorCode.NOT_FOUND.value:
        return NotFoundError(str(result.get("entity", "Entity")), result.get("key", message))
    if code == ErrorCode.INSUFFICIENT_INVENTORY.value:
        return InsufficientInventoryError(
            requested=int(result.get("requested", 0)),
            available=int(result.get("available", 0)),
            product_id=result.get("product_id"),
        )
    if code == ErrorCode.INVALID_ORDER_STATUS.value:
        return InvalidOrderStatusError(result.get("current", "UNKNOWN"), result.get("requested"))
    if code == ErrorCode.DUPLICATE_INVENTORY.value:
        return DuplicateInventoryError(result.get("slot_id"), result.get("product_id"))
    if code == ErrorCode.RESERVATION_CONFLICT.value:
        return ReservationConflictError(
            reserved=int(result.get("reserved", 0)),
            held=int(result.get("held", 0)),
            product_id=result.get("product_id"),
        )
    return None


def call_atomic(client: Any, function: str, params: Dict[str, Any]) -> Mapping[str, Any]:
    """
    Execute one of the atomic PostgreSQL functions via RPC.

    Every function locks the rows it touches (FOR UPDATE), validates, writes and
    returns a JSON object {"success": bool, "error": code, "message": text, ...}
    inside a single transaction. Business rejections are mapped back to domain
    errors; anything else is a RepositoryError.
    """

    try:
        response = client.rpc(function, params).execute()
        error = getattr(response, "error", None)
        if error:
            raise RepositoryError(function, error)
        result = response.data
    except APIError as e:
        # supabase-py raises APIError for JSON results of both outcomes, so the
        # payload decides whether the call actually failed.
        try:
            result = e.json() if callable(getattr(e, "json", None)) else {}
        except (TypeError, ValueError):
            result = {}
        if not isinstance(result, dict) or "success" not in result:
            if str(getattr(e, "code", "")) == UNIQUE_VIOLATION:
                raise UniqueViolationError(function, e.message) from None
            logger.error("Atomic function failed", extra={"function": function, "error": str(e)})
            raise RepositoryError(function, str(e)) from e

    if not isinstance(result, dict):
        raise RepositoryError(function, f"Unexpected RPC result: {result!r}")

    if result.get("success"):
        return result

    if result.get("error") == "DUPLICATE_TICKET_NUMBER":
        raise UniqueViolationError(function, result.get("message"))

    domain_error = _domain_error_from_result(result)
    if domain_error is not None:
        raise domain_error

    logger.error("Atomic function rejected call", extra={"function": function, "result": result})
    raise RepositoryError(function, result.get("message") or result.get("error"))


def first_or_not_found(
    rows: List[Mapping[str, Any]],
    entity: str,
    key: Any,
    convert: Callable[[Mapping[str, Any]], Any],
) -> Any:
    if not rows:
        raise NotFoundError(entity, key)
    return convert(rows[0])


__all__ = [
    "to_iso_utc",
    "parse_utc_datetime",
    "parse_optional_datetime",
    "execute",
    "call_atomic",
    "first_or_not_found",
]
