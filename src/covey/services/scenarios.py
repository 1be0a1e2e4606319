from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from covey.adapters.logging_utils import get_logger
from covey.analysis.underwriting import run_underwriting
from covey.domain.debt_fund import (
    COVEY_DEBT_SOURCE,
    DebtQualification,
    apply_covey_debt_terms,
    qualify_for_covey_debt,
)
from covey.domain.inputs import DEBT_FIELDS, PropertyInputs
from covey.domain.ports import ScenarioRecord, ScenarioRepository
from covey.domain.scenarios import default_scenario_name, to_strategy_type
from covey.domain.underwriting import UnderwritingResults

logger = get_logger(__name__)


@dataclass
class CoveyDebtComparison:
    qualification: DebtQualification
    inputs: PropertyInputs | None = None
    results: UnderwritingResults | None = None


@dataclass
class CoveyDebtScenarioResult:
    success: bool
    scenario_id: str | None = None
    reason: str | None = None


def apply_manual_edit(inputs: PropertyInputs, field: str, value: Any) -> PropertyInputs:
    """
    Apply a user's edit to one input field.

    Debt-fund terms are all-or-nothing: hand-editing any financing field on
    a covey_debt deal makes it an external deal again. Other edits keep the
    financing source untouched.
    """
    if field not in PropertyInputs.model_fields:
        raise ValueError(f"Unknown input field: {field}")
    if field == "financing_source":
        raise ValueError("financing_source is managed by the debt-fund flow")

    update: dict[str, Any] = {field: value}
    if field in DEBT_FIELDS and inputs.financing_source == COVEY_DEBT_SOURCE:
        update["financing_source"] = "external"
        logger.info(
            "covey_terms_released",
            extra={"context": {"field": field}},
        )

    # validate through the model so a bad value fails like a bad payload
    return PropertyInputs.model_validate({**inputs.model_dump(), **update})


def compare_with_covey_debt(
    inputs: PropertyInputs,
    results: UnderwritingResults | None = None,
) -> CoveyDebtComparison:
    """
    Qualify a deal for the debt fund and, when it qualifies, re-run the
    engine on the fund's terms so the two results can sit side by side.
    """
    if results is None:
        results = run_underwriting(inputs)

    qualification = qualify_for_covey_debt(inputs, results.noi)
    if not qualification.eligible:
        return CoveyDebtComparison(qualification=qualification)

    covey_inputs = apply_covey_debt_terms(inputs, qualification)
    return CoveyDebtComparison(
        qualification=qualification,
        inputs=covey_inputs,
        results=run_underwriting(covey_inputs),
    )


def create_scenario(
    repo: ScenarioRepository,
    *,
    property_id: str,
    inputs: PropertyInputs,
    name: str | None = None,
    is_primary: bool = False,
    unit_id: str | None = None,
) -> ScenarioRecord:
    """Underwrite `inputs` and persist the pair as a named scenario."""
    strategy_type = to_strategy_type(inputs.type)
    results = run_underwriting(inputs)
    return repo.create(
        property_id=property_id,
        name=name or default_scenario_name(strategy_type),
        strategy_type=strategy_type,
        inputs=inputs.model_dump(),
        results=results.to_dict(),
        is_primary=is_primary,
        unit_id=unit_id,
    )


def create_covey_debt_scenario(
    property_id: str,
    current_inputs: PropertyInputs,
    current_results: UnderwritingResults,
    scenario_count: int,
    repo: ScenarioRepository,
) -> CoveyDebtScenarioResult:
    """
    One-click comparison scenario on Covey Debt Fund terms.

    The ineligibility reason is returned verbatim for the UI.
    """
    comparison = compare_with_covey_debt(current_inputs, current_results)
    qualification = comparison.qualification

    if not qualification.eligible or comparison.inputs is None or comparison.results is None:
        return CoveyDebtScenarioResult(
            success=False,
            reason=qualification.reason or "Deal does not qualify for Covey Debt Fund",
        )

    try:
        scenario = repo.create(
            property_id=property_id,
            name=f"Covey Debt Fund — Scenario {scenario_count + 1}",
            strategy_type=to_strategy_type(current_inputs.type),
            inputs=comparison.inputs.model_dump(),
            results=comparison.results.to_dict(),
            is_primary=False,
        )
    except Exception as e:
        logger.warning(
            "covey_scenario_save_failed",
            extra={"context": {"property_id": property_id, "error": str(e)}},
        )
        return CoveyDebtScenarioResult(success=False, reason="Failed to save scenario")

    logger.info(
        "covey_scenario_created",
        extra={
            "context": {
                "property_id": property_id,
                "scenario_id": scenario["id"],
                "dscr_tier": qualification.dscr_tier,
            }
        },
    )
    return CoveyDebtScenarioResult(success=True, scenario_id=scenario["id"])
