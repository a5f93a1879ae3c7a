"""
Domain models for the cabinet quotation pricing engine.

Plain dataclasses shared by the normalizer, key generator, catalog matcher
and pricing calculator. Nothing here performs I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Optional

# SKU -> tier/column name -> unit price
Catalog = Dict[str, Dict[str, float]]


class CabinetType(Enum):
    """Closed cabinet-type vocabulary."""
    BASE = "Base"
    WALL = "Wall"
    TALL = "Tall"
    VANITY = "Vanity"
    FILLER = "Filler"
    PANEL = "Panel"
    ACCESSORY = "Accessory"
    HARDWARE = "Hardware"
    APPLIANCE = "Appliance"
    MODIFICATION = "Modification"
    OTHER = "Other"  # anything the extraction step labelled outside the vocabulary

    @classmethod
    def from_label(cls, label: Optional[str]) -> "CabinetType":
        """Map a free-text type label (case-insensitive) to a member, OTHER if unknown."""
        if isinstance(label, cls):
            return label
        text = (label or "").strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        return cls.OTHER


class PricingType(Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"
    INCLUDED = "included"


class OptionCategory(Enum):
    SERIES = "Series"
    DOOR = "Door"
    FINISH = "Finish"
    DRAWER = "Drawer"
    HINGE = "Hinge"
    CONSTRUCTION = "Construction"
    PRINTED_END = "PrintedEnd"
    COLLECTION = "Collection"
    DOOR_STYLE = "DoorStyle"
    OTHER = "Other"


class MatchCategory(Enum):
    """Confidence class of a generated catalog key."""
    EXACT = "exact"
    SIMILAR = "similar"


@dataclass
class Modification:
    description: str
    price: float = 0.0


@dataclass
class CabinetItem:
    """A single extracted cabinet/hardware entry."""
    id: str
    original_code: str
    type: CabinetType = CabinetType.BASE
    description: str = ""
    width: float = 0
    height: float = 0
    depth: float = 0
    quantity: int = 1
    room: str = "General"
    normalized_code: str = ""
    modifications: List[Modification] = field(default_factory=list)
    source_page: Optional[int] = None
    is_manual: bool = False
    extracted_price: Optional[float] = None
    notes: str = ""

    def __post_init__(self):
        self.type = CabinetType.from_label(self.type)


@dataclass
class ManufacturerTier:
    id: str
    name: str
    multiplier: float = 1.0
    collection: Optional[str] = None


@dataclass
class ManufacturerOption:
    """A chargeable or informational attribute (door style, finish, hinge...)."""
    id: str
    name: str
    category: OptionCategory = OptionCategory.OTHER
    section: str = ""
    pricing_type: PricingType = PricingType.FIXED
    price: float = 0.0
    description: str = ""


@dataclass
class Manufacturer:
    id: str
    name: str
    base_pricing_multiplier: float = 1.0
    tiers: List[ManufacturerTier] = field(default_factory=list)
    series: List[str] = field(default_factory=list)
    options: List[ManufacturerOption] = field(default_factory=list)
    catalog: Catalog = field(default_factory=dict)

    @property
    def sku_count(self) -> int:
        return len(self.catalog)

    def find_tier(self, tier_id: str) -> Optional[ManufacturerTier]:
        """Tier with the given id, else the first tier, else None."""
        for tier in self.tiers:
            if tier.id == tier_id:
                return tier
        return self.tiers[0] if self.tiers else None


@dataclass
class ProjectSpecs:
    """
    Selected project specs.

    Every field defaults to None so a room-level override only carries the
    keys it actually sets; see merged_with().
    """
    door_style: Optional[str] = None
    finish: Optional[str] = None
    price_group: Optional[str] = None
    drawer_box: Optional[str] = None
    hinge_type: Optional[str] = None
    wood_species: Optional[str] = None
    finish_color: Optional[str] = None
    glaze: Optional[str] = None
    finish_option1: Optional[str] = None
    finish_option2: Optional[str] = None
    printed_end_option: Optional[str] = None
    wall_door_option: Optional[str] = None
    base_door_option: Optional[str] = None
    selected_options: Optional[Dict[str, bool]] = None
    dynamic_selections: Optional[Dict[str, str]] = None

    def merged_with(self, override: Optional["ProjectSpecs"]) -> "ProjectSpecs":
        """Return a copy with every non-None field of `override` winning."""
        if override is None:
            return replace(self)
        changes = {
            f.name: getattr(override, f.name)
            for f in fields(self)
            if getattr(override, f.name) is not None
        }
        return replace(self, **changes)

    def selection_values(self) -> List[str]:
        """Dropdown-style values that may name a manufacturer option."""
        values = [
            self.drawer_box, self.hinge_type, self.wood_species, self.finish_color,
            self.glaze, self.finish_option1, self.finish_option2,
            self.printed_end_option, self.wall_door_option, self.base_door_option,
        ]
        values.extend((self.dynamic_selections or {}).values())
        return [v for v in values if v and v not in ("None", "Standard", "No")]


@dataclass
class ProjectFinancials:
    """Cost and margin controls. Rates are whole percents unless noted."""
    pricing_factor: float = 0.0
    global_margin: float = 0.0  # 35 or 0.35, see normalize_margin()
    room_factors: Dict[str, float] = field(default_factory=dict)
    category_margins: Dict[str, float] = field(default_factory=dict)
    discount_rate: float = 0.0
    tax_rate: float = 0.0
    shipping_cost: float = 0.0
    fuel_surcharge: float = 0.0
    misc_charge: float = 0.0


@dataclass
class AppliedOption:
    name: str
    price: float
    source_section: Optional[str] = None


@dataclass
class CatalogMatch:
    """Result of a successful catalog lookup."""
    price: float
    source: str
    matched_sku: str


@dataclass
class PricingLineItem:
    """A priced CabinetItem."""
    item: CabinetItem
    base_price: float
    options_price: float
    unit_cost: float
    final_unit_price: float
    total_price: float
    pricing_factor: float
    margin: float  # percent
    tier_name: str
    source: str
    matched_sku: str
    applied_options: List[AppliedOption] = field(default_factory=list)

    @property
    def original_code(self) -> str:
        return self.item.original_code

    @property
    def type(self) -> CabinetType:
        return self.item.type

    @property
    def quantity(self) -> int:
        return self.item.quantity

    @property
    def room(self) -> str:
        return self.item.room

    def to_dict(self) -> Dict[str, Any]:
        item = self.item
        return {
            "id": item.id,
            "original_code": item.original_code,
            "normalized_code": item.normalized_code,
            "matched_sku": self.matched_sku,
            "type": item.type.value,
            "description": item.description,
            "width": item.width,
            "height": item.height,
            "depth": item.depth,
            "quantity": item.quantity,
            "room": item.room,
            "base_price": self.base_price,
            "options_price": self.options_price,
            "unit_cost": self.unit_cost,
            "final_unit_price": self.final_unit_price,
            "total_price": self.total_price,
            "pricing_factor": self.pricing_factor,
            "margin": self.margin,
            "tier_name": self.tier_name,
            "source": self.source,
            "applied_options": [
                {"name": o.name, "price": o.price, "source_section": o.source_section}
                for o in self.applied_options
            ],
        }
