"""Erkennung Barcode vs. Freitext für rohe Sucheingaben."""

from __future__ import annotations

import re

from processed_or_not.domain.models import InputType

# EAN-8, UPC-A, EAN-13, GTIN-14 und allgemeine numerische Codes
_BARCODE_PATTERNS = (
    re.compile(r"^\d{8}$"),
    re.compile(r"^\d{12}$"),
    re.compile(r"^\d{13}$"),
    re.compile(r"^\d{14}$"),
    re.compile(r"^\d{4,18}$"),
)
_NUMERIC_START = re.compile(r"^\d+")
_WHITESPACE = re.compile(r"\s+")


def _digit_ratio(value: str) -> float:
    if not value:
        return 0.0
    return sum(ch.isdigit() for ch in value) / len(value)


def detect_input_type(raw: str) -> InputType:
    trimmed = raw.strip()
    if not trimmed:
        return InputType.TEXT

    compact = _WHITESPACE.sub("", trimmed)
    ratio = _digit_ratio(trimmed)

    if ratio > 0.8 or any(p.match(compact) for p in _BARCODE_PATTERNS):
        return InputType.BARCODE

    if _NUMERIC_START.match(trimmed) and len(trimmed) >= 6 and ratio > 0.7:
        return InputType.BARCODE

    return InputType.TEXT


def normalize_key(raw: str) -> str:
    """
    Barcodes verlieren alle Leerzeichen ("8720 6006 18161" -> "8720600618161"),
    Freitext wird getrimmt und Mehrfach-Leerzeichen zusammengefasst.
    """
    trimmed = raw.strip()
    if detect_input_type(trimmed) is InputType.BARCODE:
        return _WHITESPACE.sub("", trimmed)
    return _WHITESPACE.sub(" ", trimmed)
