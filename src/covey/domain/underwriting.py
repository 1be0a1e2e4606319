from dataclasses import asdict, dataclass, field
from typing import Any, List, Optional


@dataclass
class YearProjection:
    year: int
    gross_income: float        # scheduled income before vacancy
    operating_expenses: float
    noi: float
    debt_service: float        # annual
    cash_flow: float           # after debt service
    property_value: float
    loan_balance: float        # end of year
    equity: float              # value - balance
    cumulative_cash_flow: float


@dataclass
class UnderwritingResults:
    # Sources & uses
    total_project_cost: float
    total_equity_required: float
    loan_to_value: float       # percent
    loan_to_cost: float        # percent

    # Annual income
    gross_scheduled_income: float
    vacancy_loss: float
    effective_gross_income: float

    # Annual expenses
    total_operating_expenses: float
    expense_ratio: float       # percent of EGI

    # Net operating income
    noi: float
    noi_margin: float          # percent of EGI

    # Debt service
    annual_debt_service: float
    monthly_debt_service: float

    # Cash flow
    cash_flow_before_debt: float
    cash_flow_after_debt: float
    monthly_cash_flow: float

    # Returns
    cap_rate: float            # percent
    cash_on_cash: float        # percent
    dscr: float
    equity_multiple: float
    irr: float                 # percent
    total_profit: float
    annualized_return: float   # percent

    # Disposition
    projected_sale_price: float
    net_sale_proceeds: float
    loan_balance: float        # at exit

    # Per unit
    price_per_unit: float
    rent_per_unit: float
    noi_per_unit: float

    yearly_projections: List[YearProjection] = field(default_factory=list)
    irr_cash_flows: List[float] = field(default_factory=list)

    # Fix and Flip only
    flip_profit: Optional[float] = None
    flip_roi: Optional[float] = None
    flip_annualized_roi: Optional[float] = None

    # Short Term Rental only
    revenue_per_available_night: Optional[float] = None
    average_daily_rate: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
