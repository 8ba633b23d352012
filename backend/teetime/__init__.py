"""Tee time checkout service."""
