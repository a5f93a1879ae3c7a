"""
Garbage Filter - Drops extracted rows that are not cabinets.

Vision extraction regularly returns page footers, totals and schedule
headers as if they were line items.
"""

import re

from models import CabinetItem

# Administrative phrases that never appear on a real cabinet line
BAD_PHRASES = [
    "PAGE ", "OF PAGE", "SUB TOTAL", "SUBTOTAL", "GRAND TOTAL", "ORDER TOTAL",
    "TAX", "SHIPPING", "JOB NAME", "PROJECT:", "QUOTE:", "DATE:", "SIGNATURE",
    "CABINET SPECIFICATIONS", "CONSTRUCTION:", "DOOR STYLE:", "LAYOUT",
]

ROOM_HEADERS = {"KITCHEN"}

APPLIANCE_WORDS = ["FRIDGE", "DISHWASHER", "RANGE", "OVEN", "MICROWAVE", "SINK", "FAUCET", "PAGE"]

PAGE_PATTERN = re.compile(r"PAGE\s+\d+\s+OF\s+\d+")
CABINET_CODE_PATTERN = re.compile(r"^[A-Z0-9]{2,}")

MAX_CODE_LENGTH = 50


def looks_like_cabinet_code(code: str) -> bool:
    """Alphanumeric prefix and no appliance keyword (REF36 yes, RANGE no)."""
    upper = (code or "").upper()
    if not CABINET_CODE_PATTERN.match(upper):
        return False
    return not any(word in upper for word in APPLIANCE_WORDS)


def is_garbage_item(item: CabinetItem) -> bool:
    code = item.original_code or ""
    description = item.description or ""
    text = f"{code} {description}".upper()

    if PAGE_PATTERN.search(text):
        return True

    if any(phrase in text for phrase in BAD_PHRASES):
        return True

    # a stray sentence read into the code column
    if len(code) > MAX_CODE_LENGTH and " " in code:
        return True

    if code.strip().upper() in ROOM_HEADERS or description.strip().upper() in ROOM_HEADERS:
        return True

    is_cabinet = looks_like_cabinet_code(code)
    if "REFRIGERATOR" in text and "PANEL" not in text and "CABINET" not in text and not is_cabinet:
        return True
    if "RANGE" in text and "HOOD" not in text and "CABINET" not in text and not is_cabinet:
        return True

    return False
