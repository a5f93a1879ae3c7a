"""
Pricing Engine - Turns extracted cabinets into priced line items.

Per item: drop garbage, resolve room-level specs, add modification and
fixed option charges, find the catalog base price through five passes of
increasing looseness, add percentage options, then apply the cost factor
and target margin.

Unmatched items are not errors: they come back priced at zero with source
"NOT FOUND" so the user can correct them.
"""

import logging
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, List, Optional, Tuple

from catalog_matcher import find_catalog_price, find_global_prefix_match
from garbage_filter import is_garbage_item
from key_generator import SmartKeys, generate_smart_keys
from models import (
    AppliedOption,
    CabinetItem,
    CabinetType,
    Catalog,
    CatalogMatch,
    Manufacturer,
    ManufacturerOption,
    PricingLineItem,
    PricingType,
    ProjectFinancials,
    ProjectSpecs,
)

logger = logging.getLogger(__name__)

NOT_FOUND = "NOT FOUND"
EXTRACTED_SOURCE = "Extracted from PDF"
DEFAULT_TIER_NAME = "Standard"

# Catalog sheet sections with type restrictions
DRAWER_SECTION = "E-Drawer"
HINGE_SECTION = "F-Hinge"
MODIFICATION_SECTION = "PDF Extraction"

# Option names this long are descriptive text pulled from a catalog sheet
DESCRIPTIVE_NAME_LENGTH = 50

TYPE_PRIORITY: Dict[CabinetType, int] = {
    CabinetType.BASE: 1,
    CabinetType.WALL: 2,
    CabinetType.TALL: 3,
    CabinetType.PANEL: 4,
    CabinetType.FILLER: 5,
    CabinetType.ACCESSORY: 6,
    CabinetType.MODIFICATION: 7,
    CabinetType.VANITY: 99,
    CabinetType.HARDWARE: 99,
    CabinetType.APPLIANCE: 99,
    CabinetType.OTHER: 99,
}

# Types a hinge option cannot apply to (no doors)
HINGELESS_TYPES = {CabinetType.FILLER, CabinetType.PANEL}

_missing_priorities = set(CabinetType) - set(TYPE_PRIORITY)
if _missing_priorities:
    raise RuntimeError(f"No sort priority for: {sorted(t.value for t in _missing_priorities)}")


def round_money(value: float, places: int = 2) -> float:
    """Round half-up (not banker's rounding) to `places` decimals."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def normalize_percentage(value: float) -> float:
    """
    Percentage option value as a fraction.

    Catalogs store both 15 and 0.15 for 15%; anything above 1 is read as a
    whole percent. A genuine 150% surcharge therefore reads as 1.5%; existing
    catalogs are priced this way, so the heuristic stays.
    """
    return value / 100 if value > 1 else value


def normalize_margin(value: float) -> float:
    """35 -> 0.35; 0.35 stays."""
    return value / 100 if value > 1 else value


def sell_price(unit_cost: float, margin_fraction: float) -> float:
    """Sell = cost / (1 - margin). A margin of 100% or more sells at cost."""
    if margin_fraction >= 1:
        return unit_cost
    return unit_cost / (1 - margin_fraction)


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

def active_options(manufacturer: Manufacturer, specs: Optional[ProjectSpecs]) -> List[ManufacturerOption]:
    """Options switched on by checkbox id or named by a dropdown selection."""
    options = manufacturer.options or []
    if specs is None:
        return []

    selected = specs.selected_options or {}
    checked = [opt for opt in options if selected.get(opt.id)]

    names = {value.lower() for value in specs.selection_values()}
    checked_ids = {opt.id for opt in checked}
    chosen = [
        opt for opt in options
        if opt.name.lower() in names and opt.id not in checked_ids
    ]
    return checked + chosen


def option_applies(option: ManufacturerOption, cabinet_type: CabinetType) -> bool:
    name = option.name.lower()
    if option.section == DRAWER_SECTION and cabinet_type is not CabinetType.BASE:
        return False
    if option.section == HINGE_SECTION and cabinet_type in HINGELESS_TYPES:
        return False
    if "wall" in name and cabinet_type is not CabinetType.WALL:
        return False
    if "base" in name and cabinet_type is not CabinetType.BASE:
        return False
    if len(option.name) > DESCRIPTIVE_NAME_LENGTH and option.price == 0:
        return False
    return True


def _apply_fixed_options(
    options: List[ManufacturerOption],
    cabinet_type: CabinetType,
    applied: List[AppliedOption],
) -> float:
    total = 0.0
    for option in options:
        if option.pricing_type is PricingType.PERCENTAGE:
            continue
        if not option_applies(option, cabinet_type):
            continue
        add_price = option.price if option.pricing_type is PricingType.FIXED else 0.0
        # zero-priced short options are kept in the log as included features
        if add_price > 0 or (option.price == 0 and len(option.name) < DESCRIPTIVE_NAME_LENGTH):
            total += add_price
            applied.append(AppliedOption(option.name, add_price, option.section))
    return total


def _apply_percentage_options(
    options: List[ManufacturerOption],
    base_price: float,
    applied: List[AppliedOption],
) -> float:
    total = 0.0
    for option in options:
        if option.pricing_type is not PricingType.PERCENTAGE:
            continue
        fraction = normalize_percentage(option.price)
        add_price = base_price * fraction
        if len(option.name) > DESCRIPTIVE_NAME_LENGTH and add_price == 0:
            continue
        total += add_price
        label = f"{option.name} ({round_money(fraction * 100, 0):g}%)"
        applied.append(AppliedOption(label, add_price, option.section))
    return total


# ---------------------------------------------------------------------------
# Base price passes
# ---------------------------------------------------------------------------

PricePass = Callable[[CabinetItem, SmartKeys, Catalog, str], Optional[CatalogMatch]]


def original_code_strict_pass(item: CabinetItem, keys: SmartKeys, catalog: Catalog, tier: str) -> Optional[CatalogMatch]:
    return find_catalog_price(item.original_code, catalog, tier, strict=True)


def _lookup_keys(key_list: List[str], label: str, catalog: Catalog, tier: str) -> Optional[CatalogMatch]:
    for key in key_list:
        match = find_catalog_price(key, catalog, tier, strict=True)
        if match is not None:
            match.source = f"Catalog ({label} Match '{key}')"
            return match
    return None


def exact_keys_pass(item: CabinetItem, keys: SmartKeys, catalog: Catalog, tier: str) -> Optional[CatalogMatch]:
    return _lookup_keys(keys.exact, "Exact", catalog, tier)


def similar_keys_pass(item: CabinetItem, keys: SmartKeys, catalog: Catalog, tier: str) -> Optional[CatalogMatch]:
    return _lookup_keys(keys.similar, "Similar", catalog, tier)


def original_code_loose_pass(item: CabinetItem, keys: SmartKeys, catalog: Catalog, tier: str) -> Optional[CatalogMatch]:
    return find_catalog_price(item.original_code, catalog, tier, strict=False)


def global_prefix_pass(item: CabinetItem, keys: SmartKeys, catalog: Catalog, tier: str) -> Optional[CatalogMatch]:
    return find_global_prefix_match(item.original_code, catalog, tier)


PRICE_PASSES: List[PricePass] = [
    original_code_strict_pass,
    exact_keys_pass,
    similar_keys_pass,
    original_code_loose_pass,
    global_prefix_pass,
]


def resolve_base_price(item: CabinetItem, catalog: Catalog, tier_name: str) -> Tuple[float, str, str]:
    """
    Base unit price for an item.

    Returns:
        (price, source, matched_sku); (0, "NOT FOUND", original code) when
        nothing matches and the item carries no extracted price.
    """
    keys = generate_smart_keys(item)
    for price_pass in PRICE_PASSES:
        match = price_pass(item, keys, catalog, tier_name)
        if match is not None:
            return match.price, match.source, match.matched_sku

    if item.extracted_price and item.extracted_price > 0:
        return item.extracted_price, EXTRACTED_SOURCE, item.original_code
    return 0.0, NOT_FOUND, item.original_code


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

def _effective_factor(item: CabinetItem, manufacturer: Manufacturer, financials: Optional[ProjectFinancials]) -> float:
    global_factor = (financials.pricing_factor if financials else 0) or manufacturer.base_pricing_multiplier or 1.0
    if financials and item.room:
        room_factor = financials.room_factors.get(item.room)
        if room_factor:
            return room_factor
    return global_factor


def _effective_margin(tier_name: str, financials: Optional[ProjectFinancials]) -> float:
    if financials is None:
        return 0.0
    margin = financials.global_margin or 0
    override = financials.category_margins.get(tier_name or DEFAULT_TIER_NAME)
    if override:
        margin = override
    return normalize_margin(margin)


def _price_item(
    item: CabinetItem,
    manufacturer: Manufacturer,
    tier_name: str,
    options: List[ManufacturerOption],
    financials: Optional[ProjectFinancials],
) -> PricingLineItem:
    cabinet_type = CabinetType.from_label(item.type)
    applied: List[AppliedOption] = []

    options_price = 0.0
    for mod in item.modifications or []:
        options_price += mod.price or 0
        applied.append(AppliedOption(mod.description, mod.price or 0, MODIFICATION_SECTION))

    options_price += _apply_fixed_options(options, cabinet_type, applied)

    base_price, source, matched_sku = resolve_base_price(item, manufacturer.catalog or {}, tier_name)
    if source == NOT_FOUND:
        logger.warning(f"No catalog price for {item.original_code!r} ({cabinet_type.value}, tier {tier_name!r})")
    else:
        logger.debug(f"{item.original_code!r} priced at {base_price} from {source}")

    options_price += _apply_percentage_options(options, base_price, applied)

    factor = _effective_factor(item, manufacturer, financials)
    unit_cost = (base_price + options_price) * factor
    margin_fraction = _effective_margin(tier_name, financials)
    unit_sell = round_money(sell_price(unit_cost, margin_fraction))

    return PricingLineItem(
        item=item,
        base_price=round_money(base_price, 0),
        options_price=round_money(options_price, 0),
        unit_cost=round_money(unit_cost),
        final_unit_price=unit_sell,
        total_price=round_money(unit_sell * item.quantity),
        pricing_factor=factor,
        margin=margin_fraction * 100,
        tier_name=tier_name or DEFAULT_TIER_NAME,
        source=source,
        matched_sku=matched_sku,
        applied_options=applied,
    )


def calculate_project_pricing(
    items: List[CabinetItem],
    manufacturer: Manufacturer,
    tier_id: str,
    specs: Optional[ProjectSpecs] = None,
    financials: Optional[ProjectFinancials] = None,
    room_specs: Optional[Dict[str, ProjectSpecs]] = None,
) -> List[PricingLineItem]:
    """
    Price a list of extracted items against a manufacturer catalog.

    Args:
        items: Extracted cabinets
        manufacturer: Pricing context including the catalog snapshot
        tier_id: Selected tier id (falls back to the first tier)
        specs: Global project specs
        financials: Factor / margin controls
        room_specs: Per-room spec overrides keyed by room name

    Returns:
        Priced line items sorted by type priority then code
    """
    tier = manufacturer.find_tier(tier_id)
    if tier is not None:
        global_tier_name = tier.name
    else:
        global_tier_name = (specs.price_group if specs else None) or DEFAULT_TIER_NAME
    global_options = active_options(manufacturer, specs)

    results: List[PricingLineItem] = []
    filtered = 0
    for item in items:
        if is_garbage_item(item):
            filtered += 1
            logger.debug(f"Dropped non-cabinet row {item.original_code!r}")
            continue

        tier_name = global_tier_name
        options = global_options
        if item.room and room_specs and item.room in room_specs:
            room_effective = (specs or ProjectSpecs()).merged_with(room_specs[item.room])
            options = active_options(manufacturer, room_effective)
            if room_effective.price_group:
                tier_name = room_effective.price_group

        results.append(_price_item(item, manufacturer, tier_name, options, financials))

    not_found = sum(1 for line in results if line.source == NOT_FOUND)
    logger.info(
        f"Priced {len(results)} items for {manufacturer.name} "
        f"({filtered} filtered, {not_found} not found)"
    )
    return sort_line_items(results)


def natural_sort_key(text: str) -> Tuple:
    """B9 < B15 < b21, case-insensitive."""
    parts = []
    for chunk in re.split(r"(\d+)", (text or "").lower()):
        if not chunk:
            continue
        if chunk.isdigit():
            parts.append((0, int(chunk), chunk))
        else:
            parts.append((1, 0, chunk))
    return tuple(parts)


def sort_line_items(lines: List[PricingLineItem]) -> List[PricingLineItem]:
    return sorted(
        lines,
        key=lambda line: (TYPE_PRIORITY[CabinetType.from_label(line.type)], natural_sort_key(line.original_code)),
    )
