"""Helpers for masking guest PII before it reaches logs."""

from __future__ import annotations


def mask_email(value: str | None) -> str | None:
    if not value or "@" not in value:
        return value
    local, _, domain = value.partition("@")
    if not local:
        return "***@" + domain
    return f"{local[0]}***@{domain}"


__all__ = ["mask_email"]
