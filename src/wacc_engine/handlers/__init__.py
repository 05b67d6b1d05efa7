"""HTTP handlers layer."""

from .wacc_handler import WACCHandler

__all__ = ["WACCHandler"]
