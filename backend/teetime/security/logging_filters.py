"""Logging filters that scrub sensitive content."""

from __future__ import annotations

import logging
import re

_SENSITIVE_PATTERN = re.compile(
    r"(Authorization: Bearer\s+[\w\.-]+"
    r"|\b(?:sk|rk|whsec)_(?:live|test)?_?[A-Za-z0-9]+"
    r"|\bpi_[A-Za-z0-9]+_secret_[\w-]+"
    r"|(?:client_secret|quote_hash)\"?\s*[:=]\s*\"?[\w-]+\"?)",
    re.IGNORECASE,
)


class SensitiveFilter(logging.Filter):
    """Replace secrets, client secrets and quote signatures with a marker."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = _SENSITIVE_PATTERN.sub("**REDACTED**", record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    key: scrub(value) for key, value in record.args.items()
                }
            else:
                record.args = tuple(scrub(arg) for arg in record.args)
        return True


def scrub(value: object) -> object:
    if isinstance(value, str):
        return _SENSITIVE_PATTERN.sub("**REDACTED**", value)
    return value


def install_sensitive_filter(*logger_names: str) -> None:
    """Attach a single ``SensitiveFilter`` to each named logger."""
    for name in logger_names:
        target = logging.getLogger(name)
        if not any(isinstance(flt, SensitiveFilter) for flt in target.filters):
            target.addFilter(SensitiveFilter())


__all__ = ["SensitiveFilter", "install_sensitive_filter", "scrub"]
