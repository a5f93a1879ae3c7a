"""
Extracted Item Preparation

Cleans up items returned by plan extraction before they are priced:
canonical codes, rule-based types, generated descriptions, and merging of
the same cabinet seen on several views of the plan.
"""

import logging
import math
import re
from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, List, Optional, Tuple

from models import CabinetItem, CabinetType
from sku_normalizer import classify_cabinet_type, normalize_nkba_code

logger = logging.getLogger(__name__)

PLACEHOLDER_DESCRIPTION = "Extracted Item"


def _js_round(value: float) -> int:
    """Half-up rounding for dimensions (30.5 -> 31)."""
    return int(math.floor((value or 0) + 0.5))


def _split_dimensions(numbers: str) -> Tuple[int, int, int]:
    """"3030" -> (30, 30, 0); "362424" -> (36, 24, 24)."""
    if not numbers.isdigit():
        return 0, 0, 0
    if len(numbers) == 4:
        return int(numbers[:2]), int(numbers[2:4]), 0
    if len(numbers) == 6:
        return int(numbers[:2]), int(numbers[2:4]), int(numbers[4:6])
    return 0, 0, 0


def _leading_width(numbers: str) -> int:
    head = numbers[:2]
    return int(head) if len(numbers) >= 2 and head.isdigit() else 0


def describe_from_code(code: Optional[str], cabinet_type: CabinetType) -> str:
    """
    Human readable description for an NKBA code.

    W3030 (Wall) -> 'Wall Cabinet 30"W x 30"H'. Types without a dimensional
    code convention get the code back unchanged.
    """
    text = (code or "").upper().strip()
    if not text:
        return PLACEHOLDER_DESCRIPTION

    match = re.match(r"^[A-Z]+", text)
    prefix = match.group(0) if match else ""
    numbers = text[len(prefix):]
    width = height = depth = 0

    cabinet_type = CabinetType.from_label(cabinet_type)
    if cabinet_type is CabinetType.WALL:
        label = "Wall Cabinet"
        width, height, depth = _split_dimensions(numbers)
    elif cabinet_type is CabinetType.TALL:
        label = "Tall Cabinet"
        width, height, depth = _split_dimensions(numbers)
    elif cabinet_type is CabinetType.BASE:
        if prefix.startswith("S"):
            label = "Sink Base Cabinet"
        elif "C" in prefix or "LS" in prefix or "EZR" in prefix:
            label = "Corner Base Cabinet"
        else:
            label = "Base Cabinet"
        width = _leading_width(numbers)
    elif cabinet_type is CabinetType.VANITY:
        label = "Vanity Sink Base" if prefix.startswith("S") else "Vanity Cabinet"
        width = _leading_width(numbers)
    elif cabinet_type is CabinetType.FILLER:
        label = "Filler"
        width = _leading_width(numbers)
    else:
        return code

    if width > 0:
        label += f' {width}"W'
    if height > 0:
        label += f' x {height}"H'
    if depth > 0:
        label += f' x {depth}"D'
    return label.strip()


# ---------------------------------------------------------------------------
# Room merging. Plans label one room several ways ("Kitchen", "Kitchen Plan",
# "GMT Kitchen Elevation"); these fold into one room before consolidation.
# ---------------------------------------------------------------------------

DEFAULT_ROOM = "General"

ROOM_ABBREVIATIONS = [
    (re.compile(r"\bSTD\b"), "STANDARD"),
    (re.compile(r"\bOPT\b"), "OPTION"),
    (re.compile(r"\bGMT\b"), "GOURMET"),
]

# View words, builder names, plan/job numbers
ROOM_NOISE_PATTERNS = [
    re.compile(r"PLAN|ELEVATION|VIEW|DETAIL|SECTION|PAGE|LEVEL|FLOOR|LAYOUT|SCHEMATIC|DRAWING"),
    re.compile(r"GARAGE\s*(RIGHT|LEFT)"),
    re.compile(r"MIH|MI\sHOMES|HOME|SARASOTA"),
    re.compile(r"GR\s*\d+"),
    re.compile(r"\b\d{4,}\b"),
]

ROOM_KINDS = [
    ("KITCHEN", re.compile(r"KITCHEN")),
    ("BATH", re.compile(r"BATH|VANITY|ENSUITE|POWDER|RESTROOM")),
    ("LAUNDRY", re.compile(r"LAUNDRY|UTILITY")),
]
OTHER_ROOM_KIND = "OTHER"

ROOM_GENERIC_WORDS = {"KITCHEN", "BATH", "BATHROOM", "VANITY", "ROOM", "PLAN", "ELEVATION"}

# Two rooms naming different members of one group are different rooms
ROOM_CONFLICT_GROUPS = [
    ("STANDARD", "GOURMET"),
    ("OWNERS", "GUEST", "HALL", "POWDER"),
    ("1", "2", "3", "4", "5"),
    ("MASTER", "GUEST", "HALL"),
]


@dataclass(frozen=True)
class RoomIdentity:
    kind: str
    discriminators: FrozenSet[str]


def room_identity(name: str) -> RoomIdentity:
    """Kind of room plus the words that tell rooms of that kind apart."""
    text = name.upper()
    for pattern, expansion in ROOM_ABBREVIATIONS:
        text = pattern.sub(expansion, text)
    for pattern in ROOM_NOISE_PATTERNS:
        text = pattern.sub("", text)
    tokens = re.sub(r"[^A-Z0-9\s]", " ", text).split()

    kind = OTHER_ROOM_KIND
    for candidate, pattern in ROOM_KINDS:
        if any(pattern.search(token) for token in tokens):
            kind = candidate
            break

    discriminators = set()
    for token in tokens:
        if token in ROOM_GENERIC_WORDS:
            continue
        # small numbers tell "Bath 2" from "Bath 3"; bigger ones are dimensions
        if token.isdigit():
            if int(token) < 10:
                discriminators.add(token)
        else:
            discriminators.add(token)
    return RoomIdentity(kind, frozenset(discriminators))


def _rooms_conflict(first: RoomIdentity, second: RoomIdentity) -> bool:
    for group in ROOM_CONFLICT_GROUPS:
        in_first = [word for word in group if word in first.discriminators]
        in_second = [word for word in group if word in second.discriminators]
        if in_first and in_second and in_first[0] != in_second[0]:
            return True
    return False


def _resolve_room(name: str, merges: Dict[str, str]) -> str:
    visited = set()
    while name in merges and name not in visited:
        visited.add(name)
        name = merges[name]
    return name


def merge_similar_rooms(items: List[CabinetItem]) -> List[CabinetItem]:
    """
    Rename rooms that are the same physical room to one name.

    Only rooms of the same known kind merge, never across conflicting
    discriminators (Standard vs Gourmet, Bath 2 vs Bath 3). When one name's
    discriminators are a subset of the other's, the more specific name wins.
    Returns copies; the input items are left untouched.
    """
    room_names: List[str] = []
    for item in items:
        room = (item.room or DEFAULT_ROOM).strip()
        if room not in room_names:
            room_names.append(room)

    identities = {name: room_identity(name) for name in room_names}
    merges: Dict[str, str] = {}
    for i, first in enumerate(room_names):
        for second in room_names[i + 1:]:
            id1, id2 = identities[first], identities[second]
            if id1.kind != id2.kind or id1.kind == OTHER_ROOM_KIND:
                continue
            if _rooms_conflict(id1, id2):
                continue
            if id1.discriminators <= id2.discriminators or id2.discriminators <= id1.discriminators:
                if len(id2.discriminators) > len(id1.discriminators):
                    merges[first] = second
                else:
                    merges[second] = first

    if merges:
        logger.info(f"Merging rooms: {', '.join(f'{a} -> {_resolve_room(a, merges)}' for a in merges)}")
    return [
        replace(item, room=_resolve_room((item.room or DEFAULT_ROOM).strip(), merges))
        for item in items
    ]


def _consolidation_key(item: CabinetItem) -> str:
    code = re.sub(r"\s+", "", (item.normalized_code or item.original_code or "").upper())
    dims = f"{_js_round(item.width)}x{_js_round(item.height)}x{_js_round(item.depth)}"
    mods = "|".join(sorted((m.description or "").strip() for m in item.modifications or []))
    room = item.room or "General"
    cabinet_type = CabinetType.from_label(item.type).value
    return f"{code}_{cabinet_type}_{dims}_{mods}_{room}"


def consolidate_items(items: List[CabinetItem]) -> List[CabinetItem]:
    """
    Merge duplicates of the same cabinet in the same room.

    Quantities are summed, the earliest positive source page is kept and
    distinct notes are joined with "; ". First-seen order is preserved.
    Room names are reconciled with merge_similar_rooms first.
    """
    items = merge_similar_rooms(items)
    merged: Dict[str, CabinetItem] = {}
    for item in items:
        key = _consolidation_key(item)
        existing = merged.get(key)
        if existing is None:
            merged[key] = replace(
                item,
                quantity=item.quantity or 1,
                modifications=list(item.modifications or []),
            )
            continue

        existing.quantity += item.quantity or 1
        if item.source_page and item.source_page > 0:
            if not existing.source_page or item.source_page < existing.source_page:
                existing.source_page = item.source_page
        if item.notes and item.notes not in (existing.notes or ""):
            existing.notes = f"{existing.notes}; {item.notes}" if existing.notes else item.notes

    if len(merged) < len(items):
        logger.info(f"Consolidated {len(items)} extracted items into {len(merged)}")
    return list(merged.values())


def prepare_extracted_items(items: List[CabinetItem]) -> List[CabinetItem]:
    """Normalize, classify, describe and consolidate extracted items."""
    prepared = []
    for item in items:
        normalized = normalize_nkba_code(item.original_code)
        cabinet_type = classify_cabinet_type(normalized) or CabinetType.from_label(item.type)
        description = item.description
        if not description or description.strip() == PLACEHOLDER_DESCRIPTION:
            description = describe_from_code(normalized, cabinet_type)
        prepared.append(replace(
            item,
            normalized_code=normalized,
            type=cabinet_type,
            description=description,
        ))
    return consolidate_items(prepared)
