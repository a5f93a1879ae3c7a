"""
Smart Key Generation - Candidate catalog keys for an extracted cabinet.

Every rule is a small pure function that looks at a KeyContext and returns
the candidates it wants looked up. KEY_RULES fixes their order, and that order
is the match priority: the pricing engine tries "exact" keys first, then
"similar" ones, and stops at the first catalog hit.
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Tuple

from models import CabinetItem, CabinetType, MatchCategory
from sku_normalizer import normalize_nkba_code

logger = logging.getLogger(__name__)

EXACT = MatchCategory.EXACT
SIMILAR = MatchCategory.SIMILAR

# Families where a +/-3" or +/-6" substitute is a sensible fallback
NEIGHBOR_PREFIXES = {"SB", "DB", "B", "VSB", "VDB", "W", "BBC", "S", "VB", "V"}

# Cross-family substitutes for sink bases
CROSS_FAMILY = {
    "SB": ("B", "VSB"),
    "VSB": ("SB", "VDB"),
}

STANDARD_WIDTHS = [9, 12, 15, 18, 21, 24, 27, 30, 33, 36, 39, 42, 45, 48]

COSMETIC_SUFFIXES = {"BUTT", "2B"}


@dataclass(frozen=True)
class KeyCandidate:
    key: str
    category: MatchCategory = EXACT
    allow_neighbors: bool = True


@dataclass(frozen=True)
class KeyContext:
    """Everything a rule may look at, derived once per item."""
    original_code: str
    normalized_code: str
    clean_code: str
    clean_norm: str
    cabinet_type: CabinetType
    width: float
    height: float
    depth: float

    @property
    def raw_compact(self) -> str:
        return re.sub(r"\s+", "", self.original_code.upper())


@dataclass
class SmartKeys:
    exact: List[str]
    similar: List[str]


class KeyCollector:
    """
    Accumulates keys in priority order.

    A key lands in at most one list; membership is tracked across both.
    Adding a key also expands its hyphenated form, its cosmetic-suffix-free
    base and (optionally) its neighbor widths.
    """

    def __init__(self) -> None:
        self.exact: List[str] = []
        self.similar: List[str] = []
        self._seen = set()

    def _push(self, key: str, category: MatchCategory) -> None:
        self._seen.add(key)
        if category is EXACT:
            self.exact.append(key)
        else:
            self.similar.append(key)

    def add(self, key: Optional[str], category: MatchCategory = EXACT,
            allow_neighbors: bool = True) -> None:
        if not key:
            return
        upper = re.sub(r"\s+", "", key.upper())
        if not upper or upper in self._seen:
            return
        self._push(upper, category)

        # B15 -> B-15
        split = re.match(r"^([A-Z]+)(\d+)$", upper)
        if split:
            hyphenated = f"{split.group(1)}-{split.group(2)}"
            if hyphenated not in self._seen:
                self._push(hyphenated, category)

        # SB36-BUTT -> SB36, W3030-A -> W3030
        if "-" in upper:
            base, _, suffix = upper.partition("-")
            if len(suffix) <= 3 or suffix in COSMETIC_SUFFIXES or suffix.isdigit():
                self.add(base, category, allow_neighbors)

        if allow_neighbors:
            self._add_neighbors(upper)

    def _add_neighbors(self, key: str) -> None:
        match = re.match(r"^([A-Z]+)(\d{2,3})$", key)
        if not match or match.group(1) not in NEIGHBOR_PREFIXES:
            return
        prefix, width = match.group(1), int(match.group(2))
        for delta in (-3, 3, -6, 6):
            self.add(f"{prefix}{width + delta}", SIMILAR, False)
        for other in CROSS_FAMILY.get(prefix, ()):
            self.add(f"{other}{width}", SIMILAR, False)

    def extend(self, candidates: List[KeyCandidate]) -> None:
        for candidate in candidates:
            self.add(candidate.key, candidate.category, candidate.allow_neighbors)


def _dim(value: float) -> str:
    """Render a dimension the way catalog SKUs spell it (15, not 15.0)."""
    number = float(value)
    return str(int(number)) if number.is_integer() else str(number)


def _first_number(code: str) -> Optional[str]:
    match = re.search(r"\d+", code)
    return match.group(0) if match else None


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def first_token_rule(ctx: KeyContext) -> List[KeyCandidate]:
    """B24 BUTT 1TD -> B24"""
    if " " not in ctx.original_code:
        return []
    token = ctx.original_code.split(" ")[0].strip().upper()
    return [KeyCandidate(token)] if len(token) > 2 else []


def direct_codes_rule(ctx: KeyContext) -> List[KeyCandidate]:
    candidates = [KeyCandidate(ctx.original_code), KeyCandidate(ctx.clean_code)]
    if ctx.normalized_code:
        candidates.append(KeyCandidate(ctx.normalized_code))
    candidates.append(KeyCandidate(ctx.clean_norm))
    return candidates


def transposition_rule(ctx: KeyContext) -> List[KeyCandidate]:
    """VDB <-> VBD is the most common typo in vanity codes."""
    candidates = []
    if "VDB" in ctx.clean_code:
        candidates.append(KeyCandidate(ctx.clean_code.replace("VDB", "VBD", 1)))
    if "VBD" in ctx.clean_code:
        candidates.append(KeyCandidate(ctx.clean_code.replace("VBD", "VDB", 1)))
    return candidates


def height_split_rule(ctx: KeyContext) -> List[KeyCandidate]:
    """3DB2136 -> 3DB21 when the tail looks like a tacked-on height."""
    match = re.match(r"^([0-9A-Z]+)(\d{2})$", ctx.clean_code)
    if match and 30 <= int(match.group(2)) <= 42:
        return [KeyCandidate(match.group(1))]
    return []


def wall_vanity_confusion_rule(ctx: KeyContext) -> List[KeyCandidate]:
    if not ctx.clean_code.startswith("WDH"):
        return []
    remainder = ctx.clean_code.replace("WDH", "", 1)
    return [
        KeyCandidate(f"{prefix}{remainder}", SIMILAR, False)
        for prefix in ("VDB", "VSB", "SB", "DB", "B")
    ]


def middle_letter_rule(ctx: KeyContext) -> List[KeyCandidate]:
    """VDB27AH-3 -> VDB27-3"""
    candidates = []
    for code in (ctx.clean_code, ctx.raw_compact):
        match = re.match(r"^([A-Z0-9]+)(\d{2})([A-Z]+)(-\d+)$", code)
        if match:
            key = f"{match.group(1)}{match.group(2)}{match.group(4)}"
            candidates.append(KeyCandidate(key, SIMILAR, True))
    return candidates


def base_fallback_rule(ctx: KeyContext) -> List[KeyCandidate]:
    """VDB27X-3 -> VDB27"""
    match = re.match(r"^([A-Z]+)(\d+)", ctx.clean_code)
    if match:
        return [KeyCandidate(f"{match.group(1)}{match.group(2)}", SIMILAR, True)]
    return []


def dash_collapse_rule(ctx: KeyContext) -> List[KeyCandidate]:
    if ctx.clean_code.count("-") > 1:
        return [KeyCandidate(ctx.clean_code.replace("-", ""))]
    return []


def _wall_keys(width: str, height: float, depth: float) -> List[str]:
    h = _dim(height) if height else "30"
    keys = [f"W{width}{h}"]
    if depth > 12:
        keys.append(f"W{width}{h}-24")
    return keys


def _base_keys(width: str, height: float, depth: float) -> List[str]:
    return [f"B{width}", f"DB{width}", f"SB{width}", f"3DB{width}", f"B{width}D"]


def _tall_keys(width: str, height: float, depth: float) -> List[str]:
    h = _dim(height) if height else "84"
    return [f"U{width}{h}", f"T{width}{h}"]


def _filler_keys(width: str, height: float, depth: float) -> List[str]:
    return [f"F{width}"]


def _panel_keys(width: str, height: float, depth: float) -> List[str]:
    return [f"PNL{width}", f"BP{width}"]


def _no_keys(width: str, height: float, depth: float) -> List[str]:
    return []


DIMENSION_KEY_BUILDERS: Dict[CabinetType, Callable[[str, float, float], List[str]]] = {
    CabinetType.BASE: _base_keys,
    CabinetType.WALL: _wall_keys,
    CabinetType.TALL: _tall_keys,
    CabinetType.FILLER: _filler_keys,
    CabinetType.PANEL: _panel_keys,
    CabinetType.VANITY: _no_keys,
    CabinetType.ACCESSORY: _no_keys,
    CabinetType.HARDWARE: _no_keys,
    CabinetType.APPLIANCE: _no_keys,
    CabinetType.MODIFICATION: _no_keys,
    CabinetType.OTHER: _no_keys,
}

_missing_types = set(CabinetType) - set(DIMENSION_KEY_BUILDERS)
if _missing_types:
    raise RuntimeError(f"No dimension key builder for: {sorted(t.value for t in _missing_types)}")


def dimension_rule(ctx: KeyContext) -> List[KeyCandidate]:
    """Keys rebuilt from measured dimensions; often better than the OCR text."""
    if not ctx.width or ctx.width <= 0:
        return []
    builder = DIMENSION_KEY_BUILDERS[ctx.cabinet_type]
    keys = builder(_dim(ctx.width), ctx.height or 0, ctx.depth or 0)
    return [KeyCandidate(key, EXACT, False) for key in keys]


def _sink_abbreviation(code: str) -> List[KeyCandidate]:
    if re.match(r"^S\d+$", code):
        return [KeyCandidate(code.replace("S", "SB", 1), EXACT, True)]
    return []


def _wall_diagonal_abbreviation(code: str) -> List[KeyCandidate]:
    nums = _first_number(code) if code.startswith("WDH") else None
    if not nums:
        return []
    return [KeyCandidate(f"WDC{nums}30", SIMILAR, False), KeyCandidate(f"W{nums}30", SIMILAR, False)]


def _panel_abbreviation(code: str) -> List[KeyCandidate]:
    nums = _first_number(code) if code.startswith("PDF") else None
    if not nums:
        return []
    return [KeyCandidate(f"PNL{nums}", EXACT, False), KeyCandidate(f"F{nums}", EXACT, False)]


def _accessory_abbreviation(code: str) -> List[KeyCandidate]:
    nums = _first_number(code) if code.startswith("OUK") else None
    if not nums:
        return []
    return [KeyCandidate(f"ACC{nums}", SIMILAR, False), KeyCandidate(f"KIT{nums}", SIMILAR, False)]


def _crown_abbreviation(code: str) -> List[KeyCandidate]:
    if code.startswith("CE"):
        return [KeyCandidate(code.replace("CE", "CM", 1), EXACT, False)]
    return []


# End panels are sold in a few fixed sizes regardless of what the plan says
END_PANEL_LITERALS = {
    "TEP": ("TEP2484", "TEP96"),
    "BEP": ("BEP24",),
    "REP": ("REP2496", "REP96"),
}


def _end_panel_literals(code: str) -> List[KeyCandidate]:
    for prefix, literals in END_PANEL_LITERALS.items():
        if code.startswith(prefix):
            return [KeyCandidate(literal, EXACT, False) for literal in literals]
    return []


def _filler_abbreviation(code: str) -> List[KeyCandidate]:
    candidates = []
    for prefix in ("BF", "WF"):
        if code.startswith(prefix):
            width = code.replace(prefix, "", 1)
            candidates.append(KeyCandidate(f"F{width}", EXACT, False))
            candidates.append(KeyCandidate("F3", SIMILAR, False))
    if code.startswith("F") and not code.startswith("FE"):
        width = code.replace("F", "", 1)
        candidates.append(KeyCandidate(f"BF{width}", SIMILAR, False))
        candidates.append(KeyCandidate(f"WF{width}", SIMILAR, False))
    return candidates


ABBREVIATION_RULES: List[Callable[[str], List[KeyCandidate]]] = [
    _sink_abbreviation,
    _wall_diagonal_abbreviation,
    _panel_abbreviation,
    _accessory_abbreviation,
    _crown_abbreviation,
    _end_panel_literals,
    _filler_abbreviation,
]


def abbreviation_rule(ctx: KeyContext) -> List[KeyCandidate]:
    candidates: List[KeyCandidate] = []
    for rule in ABBREVIATION_RULES:
        candidates.extend(rule(ctx.clean_code))
    return candidates


def standard_width_rule(ctx: KeyContext) -> List[KeyCandidate]:
    """B16 -> B15, B18 (standard widths within 2")."""
    match = re.match(r"^([A-Z]+)(\d+)", ctx.clean_code)
    if not match:
        return []
    prefix, number = match.group(1), int(match.group(2))
    if number >= 100:
        return []
    return [
        KeyCandidate(f"{prefix}{std}", SIMILAR, False)
        for std in STANDARD_WIDTHS
        if abs(number - std) <= 2
    ]


KEY_RULES: List[Callable[[KeyContext], List[KeyCandidate]]] = [
    first_token_rule,
    direct_codes_rule,
    transposition_rule,
    height_split_rule,
    wall_vanity_confusion_rule,
    middle_letter_rule,
    base_fallback_rule,
    dash_collapse_rule,
    dimension_rule,
    abbreviation_rule,
    standard_width_rule,
]


def build_context(item: CabinetItem) -> KeyContext:
    original = item.original_code or ""
    normalized = item.normalized_code or ""
    return KeyContext(
        original_code=original,
        normalized_code=normalized,
        clean_code=normalize_nkba_code(original),
        clean_norm=normalize_nkba_code(normalized),
        cabinet_type=CabinetType.from_label(item.type),
        width=item.width or 0,
        height=item.height or 0,
        depth=item.depth or 0,
    )


@lru_cache(maxsize=4096)
def _generate_for_context(ctx: KeyContext) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    collector = KeyCollector()
    for rule in KEY_RULES:
        collector.extend(rule(ctx))
    return tuple(collector.exact), tuple(collector.similar)


def generate_smart_keys(item: CabinetItem) -> SmartKeys:
    """
    Generate ranked candidate keys for an item.

    Returns:
        SmartKeys with `exact` (same physical cabinet, reinterpreted) and
        `similar` (plausible substitutes) lists, both de-duplicated and in
        lookup order.
    """
    exact, similar = _generate_for_context(build_context(item))
    logger.debug(f"Keys for {item.original_code!r}: {len(exact)} exact, {len(similar)} similar")
    return SmartKeys(exact=list(exact), similar=list(similar))
