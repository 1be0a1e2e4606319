import math
from typing import Dict, List, Optional

from covey.domain.finance import growth_factor, irr, loan_balance, monthly_payment
from covey.domain.inputs import PropertyInputs
from covey.domain.underwriting import UnderwritingResults, YearProjection

FLIP = "Fix and Flip"
STR = "Short Term Rental"

NIGHTS_PER_YEAR = 365

# Operating expenses grow at a flat 2%/yr in every projection.
EXPENSE_GROWTH_RATE = 0.02


def _ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """numerator / denominator * scale, or 0.0 when the denominator is not positive."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator * scale


def _annualize(multiple: float, years: float) -> float:
    """
    Compound growth rate, in percent, that turns 1.0 into `multiple` over
    `years`. A multiple at or below zero is a total loss: -100%.
    """
    if years <= 0:
        return 0.0
    if multiple <= 0:
        return -100.0
    try:
        return (multiple ** (1 / years) - 1) * 100.0
    except OverflowError:
        return math.inf


def _sources_and_uses(inputs: PropertyInputs) -> Dict[str, float]:
    total_project_cost = (
        inputs.purchase_price
        + inputs.closing_costs
        + inputs.renovations
        + inputs.reserves
    )
    return {
        "total_project_cost": total_project_cost,
        "total_equity_required": total_project_cost - inputs.loan_amount,
        "loan_to_value": _ratio(inputs.loan_amount, inputs.purchase_price, 100.0),
        "loan_to_cost": _ratio(inputs.loan_amount, total_project_cost, 100.0),
    }


def _gross_scheduled_income(inputs: PropertyInputs) -> float:
    """
    Annual gross income before vacancy.

    - STR: occupied nights at the nightly rate plus a cleaning fee per stay.
    - Rental / flip: (rent + other income) * 12.
    """
    if inputs.type == STR:
        occupied_nights = NIGHTS_PER_YEAR * (inputs.occupancy_rate / 100.0)
        number_of_stays = (
            occupied_nights / inputs.avg_stay_duration
            if inputs.avg_stay_duration > 0
            else 0.0
        )
        nightly_revenue = occupied_nights * inputs.avg_nightly_rate
        cleaning_revenue = number_of_stays * inputs.cleaning_fee_per_stay
        return nightly_revenue + cleaning_revenue

    return (inputs.gross_monthly_rent + inputs.other_monthly_income) * 12.0


def _vacancy_loss(inputs: PropertyInputs, gross_income: float) -> float:
    # STR occupancy already accounts for empty nights
    if inputs.type == STR:
        return 0.0
    return gross_income * (inputs.vacancy_rate / 100.0)


def _operating_expenses(inputs: PropertyInputs, gross_income: float) -> float:
    """
    Annual operating expenses. Debt service is financing, not operations.

    STR replaces the flat management cost with platform and management
    fees charged as a percent of gross bookings.
    """
    fixed = (
        inputs.property_taxes
        + inputs.insurance
        + inputs.maintenance
        + inputs.utilities
        + inputs.other_expenses
    )
    if inputs.type == STR:
        platform_fees = gross_income * (inputs.str_platform_fee / 100.0)
        str_mgmt = gross_income * (inputs.str_management / 100.0)
        return fixed + platform_fees + str_mgmt
    return fixed + inputs.management


def _flip_metrics(
    inputs: PropertyInputs,
    monthly_debt_service: float,
    total_equity_required: float,
) -> Dict[str, float]:
    months = inputs.months_to_complete
    total_flip_cost = (
        inputs.purchase_price
        + inputs.closing_costs
        + inputs.renovations
        + inputs.holding_costs_monthly * months
        + monthly_debt_service * months
    )
    sell_costs = inputs.after_repair_value * (inputs.selling_costs / 100.0)
    flip_profit = inputs.after_repair_value - sell_costs - total_flip_cost
    flip_roi = _ratio(flip_profit, total_equity_required, 100.0)

    return {
        "flip_profit": flip_profit,
        "flip_roi": flip_roi,
        "flip_annualized_roi": _annualize(1 + flip_roi / 100.0, months / 12.0),
    }


def _hold_years(inputs: PropertyInputs) -> int:
    if inputs.type == FLIP:
        return max(1, math.ceil(inputs.months_to_complete / 12.0))
    return int(inputs.hold_period_years)


def _project_years(
    inputs: PropertyInputs,
    hold_years: int,
    gross_income: float,
    operating_expenses: float,
    annual_debt_service: float,
) -> List[YearProjection]:
    """
    Year-by-year hold projection.

    Rent compounds from year 1, expenses compound at EXPENSE_GROWTH_RATE,
    debt service stays level. Flip years carry no rental income and their
    cash flow is the holding cost alone.
    """
    rent_growth = inputs.annual_rent_growth / 100.0
    appreciation = inputs.annual_appreciation / 100.0

    projections: List[YearProjection] = []
    cumulative_cash_flow = 0.0

    for year in range(1, hold_years + 1):
        rent_growth_factor = growth_factor(rent_growth, year - 1)

        if inputs.type == FLIP:
            year_income = 0.0
        else:
            year_income = gross_income * rent_growth_factor

        year_egi = year_income - _vacancy_loss(inputs, year_income)
        year_expenses = operating_expenses * growth_factor(EXPENSE_GROWTH_RATE, year - 1)
        year_noi = year_egi - year_expenses

        if inputs.type == FLIP:
            year_cash_flow = -inputs.holding_costs_monthly * 12.0
            property_value = inputs.after_repair_value
        else:
            year_cash_flow = year_noi - annual_debt_service
            property_value = inputs.purchase_price * growth_factor(appreciation, year)
        cumulative_cash_flow += year_cash_flow

        year_balance = loan_balance(
            inputs.loan_amount,
            inputs.interest_rate,
            inputs.amortization_years,
            year,
            inputs.interest_only,
        )

        projections.append(
            YearProjection(
                year=year,
                gross_income=year_income,
                operating_expenses=year_expenses,
                noi=year_noi,
                debt_service=annual_debt_service,
                cash_flow=year_cash_flow,
                property_value=property_value,
                loan_balance=year_balance,
                equity=property_value - year_balance,
                cumulative_cash_flow=cumulative_cash_flow,
            )
        )

    return projections


def _projected_sale_price(
    inputs: PropertyInputs,
    hold_years: int,
    projections: List[YearProjection],
    noi: float,
) -> float:
    if inputs.type == FLIP:
        return inputs.after_repair_value

    if inputs.exit_cap_rate > 0 and hold_years > 0:
        # income approach on forward NOI
        terminal_noi = projections[hold_years - 1].noi or noi
        forward_noi = terminal_noi * (1 + inputs.annual_rent_growth / 100.0)
        return forward_noi / (inputs.exit_cap_rate / 100.0)

    return inputs.purchase_price * growth_factor(inputs.annual_appreciation / 100.0, hold_years)


def _irr_cash_flows(
    total_equity_required: float,
    projections: List[YearProjection],
    hold_years: int,
    net_sale_proceeds: float,
) -> List[float]:
    """
    Equity out at t=0, each projected year's cash flow after, with the sale
    landing on the final year. Flips follow the same shape, so interim
    entries are pure holding-cost outflows.
    """
    flows = [-total_equity_required]
    for i in range(hold_years):
        cash_flow = projections[i].cash_flow if i < len(projections) else 0.0
        if i == hold_years - 1:
            cash_flow += net_sale_proceeds
        flows.append(cash_flow)
    return flows


def run_underwriting(inputs: PropertyInputs) -> UnderwritingResults:
    """
    Core underwriting brain.

    Pure function of `inputs`: no I/O, no state, never raises. Any ratio with
    a zero or negative denominator comes back as 0.0 so a form can recompute
    on every keystroke, garbage in included.
    """
    unit_count = max(inputs.units, 1)

    # --- sources & uses ---
    su = _sources_and_uses(inputs)
    total_equity_required = su["total_equity_required"]

    # --- income side ---
    gross_scheduled_income = _gross_scheduled_income(inputs)
    vacancy_loss = _vacancy_loss(inputs, gross_scheduled_income)
    effective_gross_income = gross_scheduled_income - vacancy_loss

    # --- operating expenses ---
    total_operating_expenses = _operating_expenses(inputs, gross_scheduled_income)
    expense_ratio = _ratio(total_operating_expenses, effective_gross_income, 100.0)

    # --- NOI ---
    noi = effective_gross_income - total_operating_expenses
    noi_margin = _ratio(noi, effective_gross_income, 100.0)

    # --- debt service ---
    monthly_debt_service = monthly_payment(
        inputs.loan_amount,
        inputs.interest_rate,
        inputs.amortization_years,
        inputs.interest_only,
    )
    annual_debt_service = monthly_debt_service * 12.0

    # --- cash flow ---
    cash_flow_before_debt = noi
    cash_flow_after_debt = noi - annual_debt_service
    monthly_cash_flow = cash_flow_after_debt / 12.0

    # --- point-in-time returns ---
    cap_rate = _ratio(noi, inputs.purchase_price, 100.0)
    cash_on_cash = _ratio(cash_flow_after_debt, total_equity_required, 100.0)
    dscr = _ratio(noi, annual_debt_service)

    # --- per unit ---
    price_per_unit = inputs.purchase_price / unit_count
    rent_per_unit = inputs.gross_monthly_rent / unit_count
    noi_per_unit = noi / unit_count

    # --- archetype extras ---
    flip: Dict[str, Optional[float]] = {
        "flip_profit": None,
        "flip_roi": None,
        "flip_annualized_roi": None,
    }
    if inputs.type == FLIP:
        flip.update(_flip_metrics(inputs, monthly_debt_service, total_equity_required))

    revenue_per_available_night: Optional[float] = None
    average_daily_rate: Optional[float] = None
    if inputs.type == STR:
        revenue_per_available_night = gross_scheduled_income / NIGHTS_PER_YEAR
        average_daily_rate = inputs.avg_nightly_rate

    # --- projections ---
    hold_years = _hold_years(inputs)
    projections = _project_years(
        inputs,
        hold_years,
        gross_scheduled_income,
        total_operating_expenses,
        annual_debt_service,
    )
    cumulative_cash_flow = projections[-1].cumulative_cash_flow if projections else 0.0

    # --- disposition ---
    projected_sale_price = _projected_sale_price(inputs, hold_years, projections, noi)
    sell_costs = projected_sale_price * (inputs.selling_costs / 100.0)
    if hold_years > 0:
        exit_loan_balance = loan_balance(
            inputs.loan_amount,
            inputs.interest_rate,
            inputs.amortization_years,
            hold_years,
            inputs.interest_only,
        )
    else:
        exit_loan_balance = inputs.loan_amount
    net_sale_proceeds = projected_sale_price - sell_costs - exit_loan_balance

    # --- IRR ---
    irr_cash_flows = _irr_cash_flows(
        total_equity_required, projections, hold_years, net_sale_proceeds
    )
    irr_pct = irr(irr_cash_flows) * 100.0

    # --- equity multiple & profit ---
    total_cash_received = cumulative_cash_flow + net_sale_proceeds
    equity_multiple = _ratio(total_cash_received, total_equity_required)
    total_profit = total_cash_received - total_equity_required
    annualized_return = _annualize(equity_multiple, hold_years)

    return UnderwritingResults(
        total_project_cost=su["total_project_cost"],
        total_equity_required=total_equity_required,
        loan_to_value=su["loan_to_value"],
        loan_to_cost=su["loan_to_cost"],
        gross_scheduled_income=gross_scheduled_income,
        vacancy_loss=vacancy_loss,
        effective_gross_income=effective_gross_income,
        total_operating_expenses=total_operating_expenses,
        expense_ratio=expense_ratio,
        noi=noi,
        noi_margin=noi_margin,
        annual_debt_service=annual_debt_service,
        monthly_debt_service=monthly_debt_service,
        cash_flow_before_debt=cash_flow_before_debt,
        cash_flow_after_debt=cash_flow_after_debt,
        monthly_cash_flow=monthly_cash_flow,
        cap_rate=cap_rate,
        cash_on_cash=cash_on_cash,
        dscr=dscr,
        equity_multiple=equity_multiple,
        irr=irr_pct,
        total_profit=total_profit,
        annualized_return=annualized_return,
        projected_sale_price=projected_sale_price,
        net_sale_proceeds=net_sale_proceeds,
        loan_balance=exit_loan_balance,
        price_per_unit=price_per_unit,
        rent_per_unit=rent_per_unit,
        noi_per_unit=noi_per_unit,
        yearly_projections=projections,
        irr_cash_flows=irr_cash_flows,
        revenue_per_available_night=revenue_per_available_night,
        average_daily_rate=average_daily_rate,
        **flip,
    )
