"""Tip models; the ledger lives in ``ledger``."""

from .models import Tip, TipStatus

__all__ = ["Tip", "TipStatus"]
