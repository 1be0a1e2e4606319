# src/covey/domain/inputs.py
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Deal archetypes the engine knows how to underwrite
InvestmentType = Literal[
    "Long Term Rental",
    "Fix and Flip",
    "Short Term Rental",
]

INVESTMENT_TYPES: tuple[str, ...] = ("Long Term Rental", "Fix and Flip", "Short Term Rental")

FinancingSource = Literal["external", "covey_debt"]

# Financing fields a user can edit by hand. Touching any of them on a
# debt-fund deal hands the deal back to external financing.
DEBT_FIELDS = frozenset(
    {
        "loan_amount",
        "interest_rate",
        "loan_term_years",
        "amortization_years",
        "interest_only",
    }
)


class PropertyInputs(BaseModel):
    """
    One underwriting scenario.

    Flat on purpose: `type` decides which income / expense / disposition
    fields the engine reads. Fields that belong to another archetype may be
    populated and are simply ignored.

    All rates are percents (6.5 means 6.5%), all expenses are annual,
    rents and holding costs are monthly.
    """
    model_config = ConfigDict(frozen=True, extra="ignore", allow_inf_nan=False)

    # Property info
    street_address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    type: InvestmentType = "Long Term Rental"
    bedrooms: float = 0.0
    bathrooms: float = 0.0
    square_feet: float = 0.0
    units: int = 1
    image_url: str = ""

    # Acquisition
    purchase_price: float = 0.0
    closing_costs: float = 0.0
    renovations: float = 0.0
    reserves: float = 0.0

    # Debt terms
    loan_amount: float = 0.0
    interest_rate: float = Field(default=0.0, description="annual, e.g. 6.5")
    loan_term_years: int = 0
    amortization_years: int = 0
    interest_only: bool = False
    financing_source: FinancingSource = "external"

    # Rental income
    gross_monthly_rent: float = 0.0
    other_monthly_income: float = 0.0
    vacancy_rate: float = Field(default=0.0, description="e.g. 5 for 5%")

    # Expenses (annual)
    property_taxes: float = 0.0
    insurance: float = 0.0
    maintenance: float = 0.0
    management: float = 0.0
    utilities: float = 0.0
    other_expenses: float = 0.0

    # Disposition (rental & STR)
    hold_period_years: int = 0
    annual_appreciation: float = 0.0
    annual_rent_growth: float = 0.0
    selling_costs: float = Field(default=0.0, description="percent of sale price")
    exit_cap_rate: float = 0.0

    # Fix and Flip
    after_repair_value: float = 0.0
    months_to_complete: float = 0.0
    holding_costs_monthly: float = 0.0

    # Short Term Rental
    avg_nightly_rate: float = 0.0
    occupancy_rate: float = Field(default=0.0, description="e.g. 70 for 70%")
    cleaning_fee_per_stay: float = 0.0
    avg_stay_duration: float = Field(default=0.0, description="nights")
    str_platform_fee: float = 0.0
    str_management: float = 0.0


def default_inputs(type: InvestmentType) -> PropertyInputs:
    """Blank-form defaults for a new scenario of the given archetype."""
    base = dict(
        type=type,
        bedrooms=3,
        bathrooms=2,
        square_feet=1500,
        units=1,
        interest_rate=7.0,
        loan_term_years=30,
        amortization_years=30,
        interest_only=False,
        vacancy_rate=5,
        hold_period_years=5,
        annual_appreciation=3,
        annual_rent_growth=2,
        selling_costs=6,
        exit_cap_rate=7,
        months_to_complete=6,
        occupancy_rate=70,
        avg_stay_duration=3,
        str_platform_fee=3,
        str_management=20,
    )

    if type == "Fix and Flip":
        base.update(
            interest_rate=10,
            loan_term_years=1,
            amortization_years=30,
            interest_only=True,
            hold_period_years=1,
        )

    if type == "Short Term Rental":
        # occupancy already nets out empty nights
        base.update(vacancy_rate=0)

    return PropertyInputs(**base)
