import math
from dataclasses import dataclass
from typing import Mapping, Optional

from covey.domain.inputs import PropertyInputs


@dataclass(frozen=True)
class DebtFundTerms:
    max_ltv: float        # e.g. 75 for 75%
    base_rate: float      # annual, e.g. 8.0
    amort_years: int      # 0 = IO only
    io_years: int         # interest-only period
    term_years: int
    interest_only: bool
    term_months: Optional[int] = None  # sub-year terms (Fix & Flip)


@dataclass(frozen=True)
class DSCRSpreadTier:
    min_dscr: float
    spread_bps: int       # negative = discount


@dataclass
class DebtQualification:
    eligible: bool
    reason: Optional[str] = None
    terms: Optional[DebtFundTerms] = None
    adjusted_rate: Optional[float] = None
    dscr_tier: Optional[str] = None


COVEY_DEBT_TERMS: dict[str, DebtFundTerms] = {
    # IO for the first 2 years, then amortizing
    "Long Term Rental": DebtFundTerms(
        max_ltv=75,
        base_rate=8.0,
        amort_years=30,
        io_years=2,
        term_years=5,
        interest_only=False,
    ),
    "Fix and Flip": DebtFundTerms(
        max_ltv=70,
        base_rate=10.0,
        amort_years=0,
        io_years=18,
        term_years=0,
        term_months=18,
        interest_only=True,
    ),
    "Short Term Rental": DebtFundTerms(
        max_ltv=70,
        base_rate=9.0,
        amort_years=25,
        io_years=1,
        term_years=5,
        interest_only=False,
    ),
}

# Descending thresholds; first match wins. Below the last tier is ineligible.
DSCR_SPREAD_TIERS: tuple[DSCRSpreadTier, ...] = (
    DSCRSpreadTier(min_dscr=1.5, spread_bps=-50),
    DSCRSpreadTier(min_dscr=1.3, spread_bps=-25),
    DSCRSpreadTier(min_dscr=1.1, spread_bps=0),
)

MIN_DSCR = DSCR_SPREAD_TIERS[-1].min_dscr

COVEY_DEBT_SOURCE = "covey_debt"


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def max_covey_loan(purchase_price: float, terms: DebtFundTerms) -> int:
    """Largest loan the fund will write, rounded to whole dollars."""
    return _round_half_up(purchase_price * (terms.max_ltv / 100.0))


def dscr_spread(dscr: float, type: str) -> Optional[tuple[int, str]]:
    """
    Rate adjustment for a deal's DSCR as (spread_bps, tier_label).

    Flips are priced flat. Returns None when the DSCR is below every tier.
    """
    if type == "Fix and Flip":
        return 0, "N/A"

    for tier in DSCR_SPREAD_TIERS:
        if dscr >= tier.min_dscr:
            if tier.spread_bps < 0:
                label = f"{tier.spread_bps}bps (DSCR >= {tier.min_dscr}x)"
            elif tier.spread_bps == 0:
                label = f"+0bps (DSCR >= {tier.min_dscr}x)"
            else:
                label = f"+{tier.spread_bps}bps"
            return tier.spread_bps, label

    return None


def qualify_for_covey_debt(
    inputs: PropertyInputs,
    noi: float,
    terms_by_type: Optional[Mapping[str, DebtFundTerms]] = None,
) -> DebtQualification:
    """
    Decide whether a deal qualifies for Covey Debt Fund financing.

    Rentals are sized on an interest-only DSCR estimate at the fund's base
    rate and max loan, then priced off the DSCR tier. Flips skip the DSCR
    check entirely.
    """
    table = COVEY_DEBT_TERMS if terms_by_type is None else terms_by_type

    terms = table.get(inputs.type)
    if terms is None:
        return DebtQualification(eligible=False, reason="Unsupported investment type")

    if inputs.purchase_price <= 0:
        return DebtQualification(eligible=False, reason="Purchase price required")

    max_loan = max_covey_loan(inputs.purchase_price, terms)
    if max_loan <= 0:
        return DebtQualification(eligible=False, reason="Loan amount would be zero")

    if inputs.type == "Fix and Flip":
        return DebtQualification(
            eligible=True,
            terms=terms,
            adjusted_rate=terms.base_rate,
            dscr_tier="N/A",
        )

    # payments are interest-only during the IO period
    annual_debt_service = max_loan * (terms.base_rate / 100.0 / 12.0) * 12.0
    estimated_dscr = noi / annual_debt_service if annual_debt_service > 0 else 0.0

    spread = dscr_spread(estimated_dscr, inputs.type)
    if spread is None:
        return DebtQualification(
            eligible=False,
            reason=f"DSCR {estimated_dscr:.2f}x is below {MIN_DSCR}x minimum",
        )

    spread_bps, tier_label = spread
    return DebtQualification(
        eligible=True,
        terms=terms,
        adjusted_rate=terms.base_rate + spread_bps / 100.0,
        dscr_tier=tier_label,
    )


def apply_covey_debt_terms(
    inputs: PropertyInputs,
    qualification: DebtQualification,
) -> PropertyInputs:
    """
    Rewrite a deal's financing to the fund's terms.

    Only the debt fields change; results are NOT recomputed here, callers
    have to run the engine again on the returned inputs.
    """
    if not qualification.eligible or qualification.terms is None:
        return inputs

    terms = qualification.terms
    rate = qualification.adjusted_rate
    if rate is None:
        rate = terms.base_rate

    if terms.term_months:
        term_years = math.ceil(terms.term_months / 12)
    else:
        term_years = terms.term_years

    return inputs.model_copy(
        update={
            "financing_source": COVEY_DEBT_SOURCE,
            "loan_amount": float(max_covey_loan(inputs.purchase_price, terms)),
            "interest_rate": rate,
            "loan_term_years": term_years,
            # IO payments ignore amortization; keep a 30yr baseline on the form
            "amortization_years": 30 if terms.interest_only else terms.amort_years,
            "interest_only": terms.interest_only,
        }
    )
