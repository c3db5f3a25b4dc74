"""Utility helpers for hbsview."""

from hbsview.utils.paths import normalize_identity, resolve_relative, with_extension

__all__ = ["normalize_identity", "resolve_relative", "with_extension"]
