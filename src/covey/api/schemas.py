# src/covey/api/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict


# --------------------------------------------
# Underwriting
# --------------------------------------------

class UnderwriteRequest(BaseModel):
    """
    Form payload for /underwrite and /debt-fund/qualify.

    Everything, `type` included, is checked by the normalizer: snake_case or
    camelCase keys, numbers or numeric strings. A missing or unknown type
    comes back as a 400.
    """
    model_config = ConfigDict(extra="allow")

    type: str | None = None


class UnderwriteResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    inputs: dict[str, Any]
    results: dict[str, Any]


# --------------------------------------------
# Debt fund
# --------------------------------------------

class QualificationOut(BaseModel):
    eligible: bool
    reason: str | None = None
    terms: dict[str, Any] | None = None
    adjusted_rate: float | None = None
    dscr_tier: str | None = None


class DebtFundResponse(BaseModel):
    qualification: QualificationOut
    # present only when eligible: the deal re-run on fund terms
    inputs: dict[str, Any] | None = None
    results: dict[str, Any] | None = None


# --------------------------------------------
# Scenarios
# --------------------------------------------

class ScenarioCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    inputs: dict[str, Any]
    name: str | None = None
    is_primary: bool = False
    unit_id: str | None = None


class CoveyScenarioCreate(BaseModel):
    inputs: dict[str, Any]
    # defaults to the number of scenarios already on the property
    scenario_count: int | None = None


class ScenarioItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    property_id: str
    unit_id: str | None = None
    name: str
    strategy_type: str
    inputs: dict[str, Any]
    results: dict[str, Any]
    is_primary: bool
    created_at: datetime
    updated_at: datetime


class CoveyScenarioResponse(BaseModel):
    success: bool
    scenario_id: str | None = None
    reason: str | None = None
