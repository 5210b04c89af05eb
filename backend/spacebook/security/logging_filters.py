"""Logging filters that scrub customer contact details."""

from __future__ import annotations

import logging
import re

_SENSITIVE_PATTERN = re.compile(
    r"(Authorization: Bearer\s+[\w\.-]+"
    r"|[\w\.+-]+@[\w-]+\.[\w\.-]+"
    r"|\+\d[\d\s().-]{7,}\d"
    r"|customer_name\"\s*:\s*\"[^\"]+\")",
    re.IGNORECASE,
)

REDACTED = "**REDACTED**"


def redact(value: str) -> str:
    return _SENSITIVE_PATTERN.sub(REDACTED, value)


class SensitiveFilter(logging.Filter):
    """Replace e-mail addresses, phone numbers and bearer tokens in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    key: redact(value) if isinstance(value, str) else value
                    for key, value in record.args.items()
                }
            else:
                record.args = tuple(
                    redact(arg) if isinstance(arg, str) else arg for arg in record.args
                )
        return True


__all__ = ["REDACTED", "SensitiveFilter", "redact"]
