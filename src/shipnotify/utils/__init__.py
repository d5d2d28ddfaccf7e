"""Shared helpers."""

from .logging import mask_phone, setup_logging

__all__ = ["mask_phone", "setup_logging"]
