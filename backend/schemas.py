from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Literal

from models import (
    CabinetItem, CabinetType, Manufacturer, ManufacturerOption, ManufacturerTier,
    Modification, OptionCategory, PricingType, ProjectFinancials, ProjectSpecs,
)

# Cabinet Item Schemas
class ModificationSchema(BaseModel):
    description: str
    price: float = 0.0

class CabinetItemSchema(BaseModel):
    id: str = ""
    original_code: str
    type: str = CabinetType.BASE.value
    description: str = ""
    width: float = 0
    height: float = 0
    depth: float = 0
    quantity: int = Field(default=1, ge=1)
    room: str = "General"
    normalized_code: str = ""
    modifications: List[ModificationSchema] = []
    source_page: Optional[int] = None
    is_manual: bool = False
    extracted_price: Optional[float] = None
    notes: str = ""

    def to_domain(self) -> CabinetItem:
        data = self.model_dump()
        data["type"] = CabinetType.from_label(self.type)
        data["modifications"] = [Modification(**m) for m in data["modifications"]]
        return CabinetItem(**data)

# Manufacturer Schemas
class TierSchema(BaseModel):
    id: str
    name: str
    multiplier: float = 1.0
    collection: Optional[str] = None

class OptionSchema(BaseModel):
    id: str
    name: str
    category: str = OptionCategory.OTHER.value
    section: str = ""
    pricing_type: Literal["fixed", "percentage", "included"] = "fixed"
    price: float = 0.0
    description: str = ""

    def to_domain(self) -> ManufacturerOption:
        categories = {c.value.lower(): c for c in OptionCategory}
        return ManufacturerOption(
            id=self.id,
            name=self.name,
            category=categories.get(self.category.lower(), OptionCategory.OTHER),
            section=self.section,
            pricing_type=PricingType(self.pricing_type),
            price=self.price,
            description=self.description,
        )

class ManufacturerSchema(BaseModel):
    id: str
    name: str
    base_pricing_multiplier: float = 1.0
    tiers: List[TierSchema] = []
    series: List[str] = []
    options: List[OptionSchema] = []
    # omitted -> taken from the catalog cache
    catalog: Optional[Dict[str, Dict[str, float]]] = None

    def to_domain(self, catalog: Dict[str, Dict[str, float]]) -> Manufacturer:
        return Manufacturer(
            id=self.id,
            name=self.name,
            base_pricing_multiplier=self.base_pricing_multiplier,
            tiers=[ManufacturerTier(**t.model_dump()) for t in self.tiers],
            series=list(self.series),
            options=[o.to_domain() for o in self.options],
            catalog=catalog,
        )

# Project Schemas
class ProjectSpecsSchema(BaseModel):
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

    def to_domain(self) -> ProjectSpecs:
        return ProjectSpecs(**self.model_dump())

class FinancialsSchema(BaseModel):
    pricing_factor: float = 0.0
    global_margin: float = 0.0
    room_factors: Dict[str, float] = {}
    category_margins: Dict[str, float] = {}
    discount_rate: float = 0.0
    tax_rate: float = 0.0
    shipping_cost: float = 0.0
    fuel_surcharge: float = 0.0
    misc_charge: float = 0.0

    def to_domain(self) -> ProjectFinancials:
        return ProjectFinancials(**self.model_dump())

# SKU Schemas
class NormalizeRequest(BaseModel):
    raw: str

class NormalizeResponse(BaseModel):
    raw: str
    normalized: str
    type: Optional[str] = None

class SmartKeysResponse(BaseModel):
    exact: List[str]
    similar: List[str]

# Catalog Schemas
class MatchRequest(BaseModel):
    sku: str
    catalog: Dict[str, Dict[str, float]]
    tier_name: str = ""
    strict: bool = False

class MatchResponse(BaseModel):
    price: float
    source: str
    matched_sku: str

    model_config = {"from_attributes": True}

class CatalogUpload(BaseModel):
    catalog: Dict[str, Dict[str, float]]

class CatalogUploadResponse(BaseModel):
    manufacturer_id: str
    sku_count: int

# Pricing Schemas
class PricingRequest(BaseModel):
    items: List[CabinetItemSchema]
    manufacturer: ManufacturerSchema
    tier_id: str = ""
    specs: Optional[ProjectSpecsSchema] = None
    financials: Optional[FinancialsSchema] = None
    room_specs: Optional[Dict[str, ProjectSpecsSchema]] = None
    prepare_items: bool = False

class AppliedOptionSchema(BaseModel):
    name: str
    price: float
    source_section: Optional[str] = None

class LineItemResponse(BaseModel):
    id: str
    original_code: str
    normalized_code: str
    matched_sku: str
    type: str
    description: str
    width: float
    height: float
    depth: float
    quantity: int
    room: str
    base_price: float
    options_price: float
    unit_cost: float
    final_unit_price: float
    total_price: float
    pricing_factor: float
    margin: float
    tier_name: str
    source: str
    applied_options: List[AppliedOptionSchema] = []

class QuoteSummarySchema(BaseModel):
    item_count: int
    total_quantity: int
    not_found_count: int
    sell_subtotal: float
    cost_subtotal: float
    discount_amount: float
    tax_amount: float
    shipping_cost: float
    fuel_surcharge: float
    misc_charge: float
    grand_total: float
    gross_profit: float
    room_subtotals: Dict[str, float] = {}
    type_subtotals: Dict[str, float] = {}

class PricingResponse(BaseModel):
    items: List[LineItemResponse]
    summary: QuoteSummarySchema
