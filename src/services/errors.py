"""
Error kinds raised by the services layer.

Each error carries a stable ``kind``, an HTTP-ish ``status_code``, whether
the caller may safely retry (``retryable``: nothing happened and a retry can
succeed), a translatable message key and structured ``details``.
"""

from __future__ import annotations

import sqlite3
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from db.database import is_lock_error
from utils.i18n import t


class StoreError(Exception):
    kind = "StoreError"
    status_code = 500
    retryable = False
    message_key = "error.server"

    def __init__(self, message: Optional[str] = None, **details: Any) -> None:
        self.details: Dict[str, Any] = details
        self._message = message
        super().__init__(message or self.message("en"))

    def message(self, lang: Optional[str] = None) -> str:
        if self._message and lang == "en":
            return self._message
        return t(self.message_key, lang, **self.details)

    def to_dict(self, lang: Optional[str] = None) -> Dict[str, Any]:
        return {
            "error": self.kind,
            "message": self.message(lang),
            "retryable": self.retryable,
            "details": {k: _jsonable(v) for k, v in self.details.items()},
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


class Unauthenticated(StoreError):
    kind = "Unauthenticated"
    status_code = 401
    message_key = "error.unauthenticated"


class InvalidCredentials(Unauthenticated):
    kind = "InvalidCredentials"
    message_key = "account.login_failed"


class Forbidden(StoreError):
    kind = "Forbidden"
    status_code = 403
    message_key = "error.forbidden"


class NotFound(StoreError):
    kind = "NotFound"
    status_code = 404
    message_key = "error.not_found"


class ProductNotFound(NotFound):
    kind = "ProductNotFound"
    message_key = "error.product_not_found"


class OrderNotFound(NotFound):
    kind = "OrderNotFound"
    message_key = "error.order_not_found"


class UserNotFound(NotFound):
    kind = "UserNotFound"
    message_key = "error.user_not_found"


class InvalidInput(StoreError):
    kind = "InvalidInput"
    status_code = 422
    message_key = "error.invalid_input"


class EmptyCart(InvalidInput):
    kind = "EmptyCart"
    message_key = "error.empty_cart"


class InvalidStatus(InvalidInput):
    kind = "InvalidStatus"
    message_key = "error.invalid_status"


class EmailTaken(InvalidInput):
    kind = "EmailTaken"
    status_code = 409
    message_key = "error.email_taken"


class InsufficientStock(StoreError):
    kind = "InsufficientStock"
    status_code = 409
    message_key = "error.insufficient_stock"


class Conflict(StoreError):
    """Concurrent writer held the store longer than the busy timeout."""

    kind = "Conflict"
    status_code = 409
    retryable = True
    message_key = "error.conflict"


class InvalidTransition(InvalidInput):
    kind = "InvalidTransition"
    status_code = 409
    message_key = "error.invalid_transition"


@asynccontextmanager
async def lock_conflicts() -> AsyncIterator[None]:
    """Turn SQLite 'database is locked' failures into a retryable Conflict."""
    try:
        yield
    except sqlite3.OperationalError as exc:
        if is_lock_error(exc):
            raise Conflict(reason=str(exc)) from exc
        raise
