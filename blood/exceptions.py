"""Error kinds raised by the fulfillment engine's synchronous operations."""

from __future__ import annotations

from typing import Dict, List, Optional


class FulfillmentError(Exception):
    """Base class; ``status_code`` is what the JSON views answer with."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, *, errors: Optional[Dict[str, List[str]]] = None):
        self.message = message or self.default_message
        self.errors = errors or {}
        super().__init__(self.message)


class NotFound(FulfillmentError):
    status_code = 404
    default_message = "Record not found"


class InvalidState(FulfillmentError):
    status_code = 409
    default_message = "Operation not allowed in the current state"


class ValidationFailure(FulfillmentError):
    status_code = 400
    default_message = "Invalid data"


class Forbidden(FulfillmentError):
    status_code = 403
    default_message = "You are not allowed to perform this action"


class Conflict(FulfillmentError):
    status_code = 409
    default_message = "Conflicts with an existing record"
