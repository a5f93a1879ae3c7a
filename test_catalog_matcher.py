"""
Tests for catalog lookup strategies and tier column resolution.
"""

from catalog_matcher import (
    core_extraction_strategy,
    find_catalog_price,
    find_global_prefix_match,
    neighbor_height_strategy,
    resolve_tier_price,
    suffix_stripping_strategy,
)


def test_exact_match():
    match = find_catalog_price("B15", {"B15": {"Standard": 200}}, "Standard")
    assert match.price == 200
    assert match.matched_sku == "B15"
    assert match.source == "Catalog (Exact Tier)"


def test_lookup_is_normalized():
    match = find_catalog_price(" b–15 ", {"B-15": {"Standard": 10}}, "Standard", strict=True)
    assert match.price == 10


def test_unknown_and_empty_never_match():
    catalog = {"UNKNOWN": {"Standard": 1}}
    assert find_catalog_price("UNKNOWN", catalog, "Standard") is None
    assert find_catalog_price("", catalog, "Standard") is None
    assert find_catalog_price("B15", {}, "Standard") is None


def test_hyphen_insensitive():
    match = find_catalog_price("B-15", {"B15": {"Standard": 5}}, "Standard", strict=True)
    assert match.matched_sku == "B15"
    assert "Hyphen-Insensitive" in match.source


def test_hyphen_insertion():
    match = find_catalog_price("B15", {"B-15": {"Standard": 5}}, "Standard", strict=True)
    assert match.matched_sku == "B-15"
    assert "Inserted-Hyphen" in match.source


def test_neighbor_height_loose_only():
    catalog = {"W3624": {"Standard": 100}}
    match = find_catalog_price("W3625", catalog, "Standard", strict=False)
    assert match.price == 100
    assert "Neighbor" in match.source
    assert find_catalog_price("W3625", catalog, "Standard", strict=True) is None


def test_neighbor_height_drops_suffix():
    hits = list(neighbor_height_strategy("W3625X", {"W3624": {"Standard": 1}}))
    assert hits == [("W3624", "Neighbor (Matched W3624)")]


def test_suffix_stripping():
    match = find_catalog_price("B24XYZ", {"B24": {"Standard": 80}}, "Standard")
    assert match.matched_sku == "B24"
    assert "Stripped XYZ" in match.source


def test_suffix_stripping_stops_at_three_characters():
    assert list(suffix_stripping_strategy("B24X", {"B2": {"Standard": 1}})) == []


def test_core_extraction():
    hits = list(core_extraction_strategy("VDB24X", {"VDB24": {"Standard": 1}}))
    assert hits == [("VDB24", "Core Extraction")]


def test_empty_entry_keeps_searching():
    catalog = {"B15": {}, "B-15": {"Standard": 10}}
    match = find_catalog_price("B15", catalog, "Standard", strict=True)
    assert match.matched_sku == "B-15"
    assert match.price == 10


# ---------------------------------------------------------------------------
# Tier resolution
# ---------------------------------------------------------------------------

def test_tier_exact_column():
    match = resolve_tier_price({"Cherry": 100, "Maple": 120}, "Maple", "B15", "Exact")
    assert match.price == 120
    assert match.source == "Catalog (Exact Tier)"


def test_tier_fuzzy_column():
    match = resolve_tier_price({"Cherry Select": 100, "Maple": 120}, "cherry", "B15", "Exact")
    assert match.price == 100
    assert match.source == "Catalog (Exact Fuzzy 'Cherry Select')"


def test_tier_single_column_fallback():
    match = resolve_tier_price({"Price": 50}, "Walnut", "B15", "Exact")
    assert match.price == 50
    assert "Fallback 'Price'" in match.source


def test_tier_generic_price_column():
    match = resolve_tier_price({"Cherry": 1, "List Price": 2}, "Walnut", "B15", "Exact")
    assert match.price == 2
    assert "Generic 'List Price'" in match.source


def test_tier_blind_fallback():
    match = resolve_tier_price({"Cherry": 1, "Maple": 2}, "Walnut", "B15", "Exact")
    assert match.price == 1
    assert "Blind Fallback 'Cherry'" in match.source


def test_tier_empty_entry():
    assert resolve_tier_price({}, "Standard", "B15", "Exact") is None


def test_lowercase_tier_falls_back_to_single_column():
    match = find_catalog_price("B15", {"B15": {"Standard": 200}}, "standard")
    assert match.price == 200


# ---------------------------------------------------------------------------
# Global prefix scan
# ---------------------------------------------------------------------------

def test_global_prefix_prefers_shortest():
    catalog = {
        "B15-LEFT": {"Standard": 3},
        "B15-LH": {"Standard": 1},
        "B15-L": {"Standard": 2},
    }
    match = find_global_prefix_match("B15", catalog, "Standard")
    assert match.matched_sku == "B15-L"
    assert match.price == 2
    assert "Global Prefix Match 'B15-L'" in match.source


def test_global_prefix_respects_overhang():
    assert find_global_prefix_match("B15", {"B15-LEFT": {"Standard": 3}}, "Standard") is None
