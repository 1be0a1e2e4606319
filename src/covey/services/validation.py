# src/covey/services/validation.py

import math
import numbers
import re
from typing import Any

from covey.domain.inputs import INVESTMENT_TYPES, PropertyInputs

# Fields the engine reads as numbers. Anything missing or unparseable is 0.
FLOAT_FIELDS = (
    "bedrooms",
    "bathrooms",
    "square_feet",
    "purchase_price",
    "closing_costs",
    "renovations",
    "reserves",
    "loan_amount",
    "interest_rate",
    "gross_monthly_rent",
    "other_monthly_income",
    "vacancy_rate",
    "property_taxes",
    "insurance",
    "maintenance",
    "management",
    "utilities",
    "other_expenses",
    "annual_appreciation",
    "annual_rent_growth",
    "selling_costs",
    "exit_cap_rate",
    "after_repair_value",
    "months_to_complete",
    "holding_costs_monthly",
    "avg_nightly_rate",
    "occupancy_rate",
    "cleaning_fee_per_stay",
    "avg_stay_duration",
    "str_platform_fee",
    "str_management",
)

INT_FIELDS = (
    "units",
    "loan_term_years",
    "amortization_years",
    "hold_period_years",
)

TEXT_FIELDS = (
    "street_address",
    "city",
    "state",
    "zip",
    "image_url",
)

# Older scenarios were saved with this label for rentals
_TYPE_ALIASES = {
    "long term hold": "Long Term Rental",
    "long_term_rental": "Long Term Rental",
    "fix_and_flip": "Fix and Flip",
    "short_term_rental": "Short Term Rental",
}

_TRUTHY = {"true", "yes", "y", "1", "on"}

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _to_snake(key: str) -> str:
    """purchasePrice -> purchase_price; snake_case keys pass through."""
    return _CAMEL_RE.sub("_", key).lower()


def _to_num_optional(val: Any) -> float:
    """
    Lenient converter for form numbers.

    Accepts 325000, "325000", "$325,000", "6.5%", " 6.5 ".
    Returns 0.0 when missing/blank/garbage.
    """
    if val is None or isinstance(val, bool):
        return 0.0
    if isinstance(val, numbers.Real):
        f = float(val)
        return f if math.isfinite(f) else 0.0
    if isinstance(val, str):
        s = val.strip().replace("$", "").replace(",", "")
        if s.endswith("%"):
            s = s[:-1]
        if not s:
            return 0.0
        try:
            f = float(s)
        except ValueError:
            return 0.0
        return f if math.isfinite(f) else 0.0
    return 0.0


def _to_bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    if isinstance(val, numbers.Real):
        return val != 0
    if isinstance(val, str):
        return val.strip().lower() in _TRUTHY
    return False


def normalize_investment_type(val: Any) -> str:
    """
    Map a type label to one of INVESTMENT_TYPES, case-insensitively.

    Raises ValueError for missing/unknown types; that is the one input
    the engine cannot default.
    """
    if val is None or not str(val).strip():
        raise ValueError("Missing required field: type")

    raw = str(val).strip()
    low = raw.lower()
    for t in INVESTMENT_TYPES:
        if low == t.lower():
            return t
    if low in _TYPE_ALIASES:
        return _TYPE_ALIASES[low]
    raise ValueError(f"Unsupported investment type: {raw}")


def normalize_inputs(raw: dict[str, Any]) -> PropertyInputs:
    """
    Turn a form / stored payload into PropertyInputs.

    Responsibilities:
      - Accept snake_case or camelCase keys.
      - Coerce every numeric field, defaulting to 0 when missing or garbage.
      - Normalize the investment type (the only hard failure).
      - Anything but "covey_debt" is external financing.
    """
    data = {_to_snake(str(k)): v for k, v in raw.items()}

    cleaned: dict[str, Any] = {"type": normalize_investment_type(data.get("type"))}

    for field in FLOAT_FIELDS:
        cleaned[field] = _to_num_optional(data.get(field))

    for field in INT_FIELDS:
        cleaned[field] = int(_to_num_optional(data.get(field)))
    # a property always has at least one door
    if "units" not in data or cleaned["units"] < 1:
        cleaned["units"] = 1

    for field in TEXT_FIELDS:
        val = data.get(field)
        cleaned[field] = "" if val is None else str(val)

    cleaned["interest_only"] = _to_bool(data.get("interest_only"))

    source = str(data.get("financing_source") or "").strip().lower()
    cleaned["financing_source"] = "covey_debt" if source == "covey_debt" else "external"

    return PropertyInputs(**cleaned)
