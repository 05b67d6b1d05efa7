"""Utility modules for the WACC engine."""

from .fingerprint import FINGERPRINT_PREFIX, canonical_form, fingerprint

__all__ = [
    "FINGERPRINT_PREFIX",
    "canonical_form",
    "fingerprint",
]
