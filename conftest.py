import pytest

from models import CabinetItem, CabinetType, Manufacturer, ManufacturerTier


@pytest.fixture
def make_item():
    counter = {"n": 0}

    def _make(code, cabinet_type=CabinetType.BASE, **kwargs):
        counter["n"] += 1
        kwargs.setdefault("id", f"item-{counter['n']}")
        kwargs.setdefault("normalized_code", code)
        return CabinetItem(original_code=code, type=cabinet_type, **kwargs)

    return _make


@pytest.fixture
def make_manufacturer():
    def _make(catalog, options=None, tiers=None, multiplier=1.0):
        return Manufacturer(
            id="mfg-1",
            name="Test Mfg",
            base_pricing_multiplier=multiplier,
            tiers=tiers if tiers is not None else [ManufacturerTier(id="standard", name="Standard")],
            options=options or [],
            catalog=catalog,
        )

    return _make
