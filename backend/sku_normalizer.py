"""
SKU Normalization - Canonicalizes OCR-noisy cabinet codes.

Extracted codes arrive as "SB 33", "3D$18", "VDB27AH-3", "W3618 X 24 DP".
Catalog ingestion runs the same rules, so a normalized code can be looked up
against catalog keys directly.
"""

import re
from typing import Callable, List, Optional, Tuple

from models import CabinetType

UNKNOWN_SKU = "UNKNOWN"


class SKUNormalizer:
    """Rule-based NKBA code normalizer."""

    # OCR symbol misreads (matched after upper-casing)
    SYMBOL_FIXES = [
        ("$", "B"),      # 3D$18 -> 3DB18
        ("Â‚¬", "E"),    # mojibake euro sign
        ("€", "E"),
        ("É", "E"),
        ("È", "E"),
        ("@", "0"),
    ]

    # Cosmetic / directional suffixes that never change the price
    COSMETIC_PATTERNS = [
        re.compile(r"-?2B$"),
        re.compile(r"\([LR]\)$"),
        re.compile(r"\s*X\s*\d+\s*DP"),  # W3618 X 24 DP
        re.compile(r"(?:(?<=\d\d)1|(?<!\d)1)?TD"),  # 1TD tray divider; B24TD keeps its width
        re.compile(r"ROT"),              # roll out tray
    ]

    CONSTRUCTION_SUFFIX = re.compile(r"(\d+)(?:AH|VH|PH)(?:-?[0-9A-Z]+)?$")

    # Ordered prefix rules; first match wins. Vanity is the most specific.
    TYPE_PREFIXES: List[Tuple[CabinetType, Tuple[str, ...]]] = [
        (CabinetType.VANITY, ("VSB", "VDB", "V")),
        (CabinetType.WALL, ("W", "DC", "WDC", "WBC")),
        (CabinetType.BASE, ("B", "SB", "SKB", "DB", "LS", "BEC", "BBC", "K", "BTK",
                            "SHB", "BC", "EZR", "DCB")),
        (CabinetType.TALL, ("T", "O", "P")),
        (CabinetType.FILLER, ("F", "UF", "U", "WF", "TF")),
    ]

    @classmethod
    def normalize(cls, raw: Optional[str]) -> str:
        """
        Normalize a raw code to its canonical form.

        Rules are applied repeatedly until the code stops changing, so
        normalize(normalize(x)) == normalize(x) for every input.
        """
        if not raw:
            return ""

        code = str(raw).upper().strip()
        # Every rule either shortens the code or removes a symbol it never
        # reintroduces, so this terminates.
        while True:
            updated = cls._normalize_once(code)
            if updated == code:
                return code
            code = updated

    @classmethod
    def _normalize_once(cls, code: str) -> str:
        steps: List[Callable[[str], str]] = [
            cls._fix_symbols,
            cls._collapse_spaces,
            cls._fix_zero_padding,
            cls._strip_cosmetic,
            cls._strip_stray_dots,
            cls._strip_construction,
            cls._strip_trailing_markers,
        ]
        for step in steps:
            code = step(code)
        return code.strip()

    @classmethod
    def _fix_symbols(cls, code: str) -> str:
        code = code.upper()
        for bad, good in cls.SYMBOL_FIXES:
            code = code.replace(bad, good)
        return code

    @staticmethod
    def _collapse_spaces(code: str) -> str:
        code = re.sub(r"\s+", " ", code).strip()
        # "SB 33" -> "SB33"
        return re.sub(r"([A-Z])\s+(\d)", r"\1\2", code)

    @staticmethod
    def _fix_zero_padding(code: str) -> str:
        # BD1015 -> BD15 (the "1" is usually a pipe read as a digit)
        if re.match(r"^[A-Z]+10\d{2}", code):
            code = re.sub(r"([A-Z]+)10(\d{2})", r"\1\2", code, count=1)
        # B015 -> B15
        if re.match(r"^[A-Z]+0\d{2}", code):
            code = re.sub(r"([A-Z]+)0(\d{2})", r"\1\2", code, count=1)
        return code

    @classmethod
    def _strip_cosmetic(cls, code: str) -> str:
        for pattern in cls.COSMETIC_PATTERNS:
            code = pattern.sub("", code)
        return code.strip()

    @staticmethod
    def _strip_stray_dots(code: str) -> str:
        # keep 1.5, drop MW.HOOD
        code = re.sub(r"(?<!\d)\.", "", code)
        return re.sub(r"\.(?!\d)", "", code)

    @classmethod
    def _strip_construction(cls, code: str) -> str:
        # VDB27AH-3 -> VDB27; the key generator rebuilds VDB27-3
        return cls.CONSTRUCTION_SUFFIX.sub(r"\1", code)

    @staticmethod
    def _strip_trailing_markers(code: str) -> str:
        code = re.sub(r"HD$", "", code)

        if code.startswith("DHW"):
            code = "DW" + code[3:]

        if re.search(r"\d-?[LR]$", code):
            code = re.sub(r"-?[LR]$", "", code)
        code = re.sub(r"-?LH$", "", code)
        code = re.sub(r"-?RH$", "", code)

        # finished end
        return re.sub(r"-?FE[LR]?$", "", code)

    @classmethod
    def classify(cls, code: Optional[str]) -> Optional[CabinetType]:
        """Classify a code by prefix. Returns None when no rule matches."""
        text = (code or "").upper().strip()
        if not text:
            return None
        for cabinet_type, prefixes in cls.TYPE_PREFIXES:
            if text.startswith(prefixes):
                return cabinet_type
        return None


def normalize_nkba_code(raw: Optional[str]) -> str:
    """Normalize a raw extracted code."""
    return SKUNormalizer.normalize(raw)


def classify_cabinet_type(code: Optional[str]) -> Optional[CabinetType]:
    """Rule-based cabinet type for a code, or None if unrecognized."""
    return SKUNormalizer.classify(code)


def normalize_lookup(sku: Optional[str]) -> str:
    """Lookup form used for catalog keys: upper, unified dashes, no spaces."""
    if not sku:
        return ""
    text = str(sku).strip().upper()
    text = text.replace("\u2013", "-").replace("\u2014", "-")
    return re.sub(r"\s+", "", text)
