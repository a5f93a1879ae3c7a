"""
Tests for SKU normalization and rule-based type classification.
"""

import pytest

from models import CabinetType
from sku_normalizer import (
    SKUNormalizer,
    classify_cabinet_type,
    normalize_lookup,
    normalize_nkba_code,
)


@pytest.mark.parametrize("raw, expected", [
    ("SB 33", "SB33"),
    ("sb33", "SB33"),
    ("3D$18", "3DB18"),
    ("BD1015", "BD15"),
    ("B015", "B15"),
    ("W3618 X 24 DP", "W3618"),
    ("VDB27AH-3", "VDB27"),
    ("SB36-2B", "SB36"),
    ("W3030 (L)", "W3030"),
    ("B15-L", "B15"),
    ("B15R", "B15"),
    ("W3030ROT", "W3030"),
    ("B24TD", "B24"),
    ("B241TD", "B24"),
    ("B21TD", "B21"),
    ("B24 1TD", "B24"),
    ("DHW2430", "DW2430"),
    ("B18FE", "B18"),
    ("B18FEL", "B18"),
    ("MW.HOOD", "MWHOOD"),
    ("  b24  ", "B24"),
])
def test_normalize_known_codes(raw, expected):
    assert normalize_nkba_code(raw) == expected


def test_normalize_empty():
    assert normalize_nkba_code("") == ""
    assert normalize_nkba_code(None) == ""


def test_decimal_points_between_digits_survive():
    assert normalize_nkba_code("F1.5") == "F1.5"


@pytest.mark.parametrize("raw", [
    "SB 33", "3D$18", "VDB27AH-3", "W3618 X 24 DP", "B24 BUTT 1TD", "DHW2430",
    "B15-L-R", "WF3X30", "@@B 1015", "B 0 1 5", "W3030-LH-RH", "BROTROT", "ÉB$15FER",
    "", "   ", "X", "SUBTOTAL", "PAGE 1 OF 2",
])
def test_normalize_is_idempotent(raw):
    once = normalize_nkba_code(raw)
    assert normalize_nkba_code(once) == once


@pytest.mark.parametrize("code, expected", [
    ("VDB24", CabinetType.VANITY),
    ("VSB30", CabinetType.VANITY),
    ("W3030", CabinetType.WALL),
    ("DC24", CabinetType.WALL),
    ("SB36", CabinetType.BASE),
    ("LS36", CabinetType.BASE),
    ("T1884", CabinetType.TALL),
    ("OV33", CabinetType.TALL),
    ("F3", CabinetType.FILLER),
    ("UF3", CabinetType.FILLER),
    ("u1884", CabinetType.FILLER),
])
def test_classify(code, expected):
    assert classify_cabinet_type(code) is expected


def test_classify_unknown():
    assert classify_cabinet_type("HNDL") is None
    assert classify_cabinet_type("") is None
    assert SKUNormalizer.classify(None) is None


def test_normalize_lookup():
    assert normalize_lookup(" b–15 ") == "B-15"
    assert normalize_lookup("w 30 30") == "W3030"
    assert normalize_lookup(None) == ""
