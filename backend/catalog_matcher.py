"""
Catalog Matcher - Resolves a candidate SKU to a catalog price.

Lookups run through an ordered list of strategies; the first one that finds
a catalog entry with a usable price column wins. Strict lookups only use the
cheap, high-confidence strategies. Loose lookups add neighbor heights, suffix
stripping and core extraction.
"""

import logging
import re
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from models import Catalog, CatalogMatch
from sku_normalizer import UNKNOWN_SKU, normalize_lookup

logger = logging.getLogger(__name__)

# (catalog key, method label)
StrategyHit = Tuple[str, str]
Strategy = Callable[[str, Catalog], Iterator[StrategyHit]]

# Extra characters a global prefix match may carry (e.g. "-L", "-R")
MAX_PREFIX_OVERHANG = 3


# ---------------------------------------------------------------------------
# Key strategies. Each yields (catalog_key, method) for keys present in the
# catalog, in the order they should be tried.
# ---------------------------------------------------------------------------

def exact_strategy(sku: str, catalog: Catalog) -> Iterator[StrategyHit]:
    if sku in catalog:
        yield sku, "Exact"


def hyphen_insensitive_strategy(sku: str, catalog: Catalog) -> Iterator[StrategyHit]:
    no_dash = sku.replace("-", "")
    if no_dash != sku and no_dash in catalog:
        yield no_dash, "Hyphen-Insensitive"


def hyphen_insertion_strategy(sku: str, catalog: Catalog) -> Iterator[StrategyHit]:
    """B15 -> B-15"""
    match = re.match(r"^(.*[A-Z])(\d+)$", sku)
    if match:
        with_dash = f"{match.group(1)}-{match.group(2)}"
        if with_dash in catalog:
            yield with_dash, "Inserted-Hyphen"


def neighbor_height_strategy(sku: str, catalog: Catalog) -> Iterator[StrategyHit]:
    """W3625 -> W3626, W3624, W3627, W3623 (with and without a suffix)."""
    match = re.match(r"^(W\d{2})(\d{2})([A-Z]*)$", sku)
    if not match:
        return
    prefix, height, suffix = match.group(1), int(match.group(2)), match.group(3)
    for neighbor in (height + 1, height - 1, height + 2, height - 2):
        candidate = f"{prefix}{neighbor}{suffix}"
        if candidate in catalog:
            yield candidate, f"Neighbor (Matched {candidate})"
        if suffix:
            simple = f"{prefix}{neighbor}"
            if simple in catalog:
                yield simple, f"Neighbor (Matched {simple})"


def suffix_stripping_strategy(sku: str, catalog: Catalog) -> Iterator[StrategyHit]:
    for end in range(len(sku) - 1, 2, -1):
        prefix = sku[:end]
        if prefix in catalog:
            yield prefix, f"Similar (Stripped {sku[end:]})"


def core_extraction_strategy(sku: str, catalog: Catalog) -> Iterator[StrategyHit]:
    match = re.match(r"^([A-Z]{1,4}\d{2,5})", sku)
    if match and match.group(1) in catalog:
        yield match.group(1), "Core Extraction"


STRICT_STRATEGIES: List[Strategy] = [
    exact_strategy,
    hyphen_insensitive_strategy,
    hyphen_insertion_strategy,
]

LOOSE_STRATEGIES: List[Strategy] = [
    neighbor_height_strategy,
    suffix_stripping_strategy,
    core_extraction_strategy,
]


# ---------------------------------------------------------------------------
# Tier / price column resolution
# ---------------------------------------------------------------------------

def resolve_tier_price(
    entry: Dict[str, float],
    tier_name: str,
    matched_sku: str,
    method: str,
) -> Optional[CatalogMatch]:
    """
    Pick the price column for a catalog entry.

    Order: exact tier name, case-insensitive containment either way, the
    only column, a "price"/"list" column, the first column.
    """
    if not entry:
        return None

    tier = tier_name or ""
    if tier in entry:
        return CatalogMatch(entry[tier], f"Catalog ({method} Tier)", matched_sku)

    tier_lower = tier.lower()
    if tier_lower:
        for column in entry:
            column_lower = column.lower()
            if tier_lower in column_lower or column_lower in tier_lower:
                return CatalogMatch(entry[column], f"Catalog ({method} Fuzzy '{column}')", matched_sku)

    columns = list(entry)
    if len(columns) == 1:
        # Simple price lists have one "Price" column whatever tier was picked
        return CatalogMatch(entry[columns[0]], f"Catalog ({method} Fallback '{columns[0]}')", matched_sku)

    for column in columns:
        column_lower = column.lower()
        if "price" in column_lower or "list" in column_lower:
            return CatalogMatch(entry[column], f"Catalog ({method} Generic '{column}')", matched_sku)

    return CatalogMatch(entry[columns[0]], f"Catalog ({method} Blind Fallback '{columns[0]}')", matched_sku)


def find_catalog_price(
    sku: str,
    catalog: Catalog,
    tier_name: str,
    strict: bool = False,
) -> Optional[CatalogMatch]:
    """
    Find a price for a single candidate SKU.

    Args:
        sku: Candidate code (raw or generated key)
        catalog: SKU -> tier name -> price
        tier_name: Requested price column
        strict: Only exact / hyphen strategies when True

    Returns:
        CatalogMatch or None
    """
    clean = normalize_lookup(sku)
    if not clean or clean == UNKNOWN_SKU or not catalog:
        return None

    strategies = STRICT_STRATEGIES if strict else STRICT_STRATEGIES + LOOSE_STRATEGIES
    for strategy in strategies:
        for catalog_key, method in strategy(clean, catalog):
            match = resolve_tier_price(catalog[catalog_key], tier_name, catalog_key, method)
            if match is not None:
                logger.debug(f"{clean} -> {catalog_key} via {method}")
                return match
    return None


def find_global_prefix_match(
    sku: str,
    catalog: Catalog,
    tier_name: str,
) -> Optional[CatalogMatch]:
    """
    Whole-catalog scan for a key that starts with the SKU.

    Only keys at most MAX_PREFIX_OVERHANG characters longer qualify; the
    shortest one wins, ties going to catalog order.
    """
    clean = normalize_lookup(sku)
    if not clean or clean == UNKNOWN_SKU:
        return None

    best_key = None
    best_length = None
    for catalog_key in catalog:
        candidate = normalize_lookup(catalog_key)
        if not candidate.startswith(clean) or len(candidate) > len(clean) + MAX_PREFIX_OVERHANG:
            continue
        if not catalog[catalog_key]:
            continue
        if best_length is None or len(candidate) < best_length:
            best_key, best_length = catalog_key, len(candidate)

    if best_key is None:
        return None
    return resolve_tier_price(catalog[best_key], tier_name, best_key, f"Global Prefix Match '{best_key}'")
