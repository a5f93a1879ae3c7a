from fastapi import FastAPI, APIRouter, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
import logging
from typing import List, Optional

from config import get_settings, load_environment
from catalog_cache import CatalogCache
from catalog_matcher import find_catalog_price
from item_preparation import prepare_extracted_items
from key_generator import generate_smart_keys
from models import CabinetItem
from pricing_engine import calculate_project_pricing
from quote_summary import summarize_quote
from schemas import (
    CabinetItemSchema, NormalizeRequest, NormalizeResponse, SmartKeysResponse,
    MatchRequest, MatchResponse, CatalogUpload, CatalogUploadResponse,
    PricingRequest, PricingResponse, FinancialsSchema,
)
from sku_normalizer import classify_cabinet_type, normalize_nkba_code

# Load environment before reading settings
load_environment()
settings = get_settings()

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

# Parsed catalogs keyed by manufacturer id
catalog_cache = CatalogCache(ttl_seconds=settings.catalog_cache_ttl)

# Create the main app
app = FastAPI()
api_router = APIRouter(prefix="/api")

# ===== Health Check =====
@api_router.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "cached_catalogs": len(catalog_cache),
    }

# ===== SKU Routes =====
@api_router.post("/sku/normalize", response_model=NormalizeResponse)
def normalize_sku(request: NormalizeRequest):
    normalized = normalize_nkba_code(request.raw)
    cabinet_type = classify_cabinet_type(normalized)
    return NormalizeResponse(
        raw=request.raw,
        normalized=normalized,
        type=cabinet_type.value if cabinet_type else None,
    )

@api_router.post("/sku/keys", response_model=SmartKeysResponse)
def smart_keys(item: CabinetItemSchema):
    keys = generate_smart_keys(item.to_domain())
    return SmartKeysResponse(exact=keys.exact, similar=keys.similar)

# ===== Catalog Routes =====
@api_router.post("/catalog/match", response_model=Optional[MatchResponse])
def match_sku(request: MatchRequest):
    match = find_catalog_price(request.sku, request.catalog, request.tier_name, strict=request.strict)
    if match is None:
        return None
    return MatchResponse.model_validate(match)

@api_router.put("/manufacturers/{manufacturer_id}/catalog", response_model=CatalogUploadResponse)
def upload_catalog(manufacturer_id: str, upload: CatalogUpload):
    catalog_cache.put(manufacturer_id, upload.catalog)
    return CatalogUploadResponse(manufacturer_id=manufacturer_id, sku_count=len(upload.catalog))

@api_router.delete("/manufacturers/{manufacturer_id}/catalog")
def delete_catalog(manufacturer_id: str):
    catalog_cache.invalidate(manufacturer_id)
    return {"message": "Catalog cache cleared", "manufacturer_id": manufacturer_id}

# ===== Pricing Routes =====
def _default_financials() -> FinancialsSchema:
    return FinancialsSchema(
        pricing_factor=settings.default_pricing_factor,
        global_margin=settings.default_margin,
    )

@api_router.post("/pricing/calculate", response_model=PricingResponse)
def calculate_pricing(request: PricingRequest):
    manufacturer_data = request.manufacturer
    catalog = manufacturer_data.catalog
    if catalog is None:
        catalog = catalog_cache.get(manufacturer_data.id)
        if catalog is None:
            raise HTTPException(
                status_code=404,
                detail=f"No catalog loaded for manufacturer {manufacturer_data.id}",
            )

    items: List[CabinetItem] = [item.to_domain() for item in request.items]
    if request.prepare_items:
        items = prepare_extracted_items(items)

    financials = (request.financials or _default_financials()).to_domain()
    room_specs = None
    if request.room_specs:
        room_specs = {room: specs.to_domain() for room, specs in request.room_specs.items()}

    lines = calculate_project_pricing(
        items,
        manufacturer_data.to_domain(catalog),
        request.tier_id,
        specs=request.specs.to_domain() if request.specs else None,
        financials=financials,
        room_specs=room_specs,
    )
    summary = summarize_quote(lines, financials)
    return {
        "items": [line.to_dict() for line in lines],
        "summary": summary.to_dict(),
    }

# Include the router
app.include_router(api_router)

# Global exception handler for unhandled exceptions (not HTTPExceptions)
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    if isinstance(exc, (HTTPException, RequestValidationError)):
        raise exc
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {str(exc)}"}
    )

# ===== CORS Configuration =====
allow_origins = settings.cors_origin_list
allow_credentials = settings.cors_allow_credentials
if allow_origins == ["*"] and allow_credentials:
    logger.info(
        "CORS_ORIGINS='*' while credentials were requested. "
        "Credentials have been disabled so wildcard origin remains valid."
    )
    allow_credentials = False

logger.info(
    "CORS configuration: origins=%s allow_credentials=%s",
    allow_origins,
    allow_credentials,
)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=allow_credentials,
    allow_origins=allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
