"""Payroll API error extraction and classification."""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any

GENERIC_VALIDATION = "a validation exception occurred"

_MESSAGE_KEYS = ("Message", "message", "Detail", "detail", "Description", "description")
_XML_MESSAGE = re.compile(r"<Message>(.*?)</Message>", re.IGNORECASE | re.DOTALL)


class PayrollErrorKind(str, Enum):
    """Coarse classification of payroll API failures."""

    TIMESHEET_EXISTS = "timesheet_exists"
    NO_PAY_CALENDAR = "no_pay_calendar"
    BAD_PERIOD = "bad_period"
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class PayrollApiError(Exception):
    """Raised when a call to the payroll system fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        kind: PayrollErrorKind = PayrollErrorKind.UNKNOWN,
    ):
        self.message = message
        self.status_code = status_code
        self.kind = kind
        prefix = f"HTTP {status_code}: " if status_code is not None else ""
        super().__init__(f"{prefix}{message}")


class CatalogUnavailableError(Exception):
    """Raised when the payroll catalog has no earnings rates to map onto."""

    def __init__(self, detail: str = "No earnings rates returned by the payroll system"):
        self.detail = detail
        super().__init__(detail)


def _collect(node: Any, found: list[str]) -> None:
    if isinstance(node, dict):
        for key in _MESSAGE_KEYS:
            value = node.get(key)
            if isinstance(value, str) and value.strip():
                found.append(value.strip())
        for value in node.values():
            if isinstance(value, (dict, list)):
                _collect(value, found)
    elif isinstance(node, list):
        for item in node:
            _collect(item, found)


def extract_error_message(body: str | bytes | None) -> str:
    """Most useful human-readable message in an error body.

    Walks JSON message/detail/description keys (including nested
    validation errors) or XML <Message> tags, preferring anything more
    specific than the generic validation banner.
    """
    if body is None:
        return "Empty error response"
    text = body.decode("utf-8", "replace") if isinstance(body, bytes) else body
    text = text.strip()
    if not text:
        return "Empty error response"

    messages: list[str] = []
    try:
        _collect(json.loads(text), messages)
    except ValueError:
        messages = [m.strip() for m in _XML_MESSAGE.findall(text) if m.strip()]

    for message in messages:
        if message.lower().rstrip(".") != GENERIC_VALIDATION:
            return message
    if messages:
        return messages[0]
    return text[:500]


def classify_error(message: str, status_code: int | None = None) -> PayrollErrorKind:
    lowered = message.lower()
    if "timeout" in lowered or "timed out" in lowered or status_code in (408, 504):
        return PayrollErrorKind.TIMEOUT
    if "already exists" in lowered or "timesheet exists" in lowered:
        return PayrollErrorKind.TIMESHEET_EXISTS
    if "calendar" in lowered:
        return PayrollErrorKind.NO_PAY_CALENDAR
    if "period" in lowered or "start date" in lowered or "end date" in lowered:
        return PayrollErrorKind.BAD_PERIOD
    if "validation" in lowered or status_code == 400:
        return PayrollErrorKind.VALIDATION
    return PayrollErrorKind.UNKNOWN
