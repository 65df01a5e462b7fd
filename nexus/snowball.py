# nexus/snowball.py
import logging
from datetime import date
from typing import Iterable, List, Optional, Tuple

from .schemas import Debt, PayoffEvent, SimulatedMonth, SimulationResult
from .utils import add_months

logger = logging.getLogger(__name__)

MAX_MONTHS = 1200


def total_minimum_payments(debts: Iterable[Debt]) -> float:
    return sum(d.min_payment for d in debts)


def order_debts(debts: Iterable[Debt]) -> List[Debt]:
    # sorted() is stable, so equal balances keep their input order
    return sorted(debts, key=lambda d: d.original_amount)


def _validate_capacity(debts: List[Debt], capacity: float) -> Tuple[bool, Optional[str]]:
    if not debts:
        return False, "no_debts"
    if not capacity >= total_minimum_payments(debts):
        return False, "insufficient_capacity"
    return True, None


def _first_unpaid(balances: List[float]) -> Optional[int]:
    return next((i for i, b in enumerate(balances) if b > 0), None)


def _payoff_event(debt: Debt, month_index: int, start: date) -> PayoffEvent:
    year, month = add_months(start.year, start.month, month_index - 1)
    return PayoffEvent(
        debt_id=debt.id,
        debt_name=debt.name,
        payoff_month_index=month_index,
        payoff_year=year,
        payoff_month=month,
        starting_balance=debt.original_amount,
    )


def simulate(
    debts: Iterable[Debt],
    monthly_capacity: float = 0.0,
    lump_sum: float = 0.0,
    reference_date: Optional[date] = None,
    max_months: int = MAX_MONTHS,
) -> SimulationResult:
    """
    Project a snowball payoff.

    Debts are ordered once by original amount (smallest first). Each month every
    unpaid debt except the target gets its minimum, and whatever is left of
    ``monthly_capacity`` plus the minimums freed by paid-off debts goes to the
    target, i.e. the first unpaid debt in that fixed order. ``lump_sum`` is a
    one-time payment applied to the first debt before month 1.

    Returns ``is_valid=False`` with an empty timeline when there are no debts or
    the capacity does not cover the combined minimums. Payoff dates count from
    ``reference_date`` (today by default), month 1 being the reference month.
    """
    debts = list(debts)
    capacity = float(monthly_capacity or 0.0)
    bonus = max(0.0, float(lump_sum or 0.0))
    total_min = total_minimum_payments(debts)

    ok, reason = _validate_capacity(debts, capacity)
    if not ok:
        logger.debug("snowball not simulated", extra={"reason": reason, "debts": len(debts)})
        return SimulationResult(
            ordered_debts=[], timeline=[], first_month_mission_payment=0.0,
            is_valid=False, invalid_reason=reason, total_min_payments=total_min,
            monthly_capacity=capacity, lump_sum=bonus,
        )

    start = reference_date or date.today()
    ordered = order_debts(debts)
    balances = [d.original_amount for d in ordered]
    balances[0] -= bonus

    timeline: List[PayoffEvent] = []
    paid = [False] * len(ordered)
    freed_cashflow = 0.0

    # A debt wiped out by the lump sum is paid in month 1 and its minimum
    # joins month 1's pool.
    if balances[0] <= 0:
        timeline.append(_payoff_event(ordered[0], 1, start))
        paid[0] = True
        freed_cashflow += ordered[0].min_payment

    months: List[SimulatedMonth] = []
    mission_payment = 0.0
    month_index = 0

    while month_index < max_months and any(b > 0 for b in balances):
        month_index += 1
        available = capacity + freed_cashflow
        pool = available
        payments = {}

        # Phase 1: minimums to every unpaid debt except the target
        target = _first_unpaid(balances)
        for i, d in enumerate(ordered):
            if i == target or balances[i] <= 0:
                continue
            pay = min(d.min_payment, balances[i])
            balances[i] -= pay
            pool -= pay
            payments[d.id] = pay

        # Phase 2: everything left goes to the (re-identified) target
        target = _first_unpaid(balances)
        if target is not None:
            pay = min(pool, balances[target])
            if month_index == 1:
                mission_payment = pay
            balances[target] -= pay
            payments[ordered[target].id] = payments.get(ordered[target].id, 0.0) + pay

        for i, d in enumerate(ordered):
            if balances[i] <= 0 and not paid[i]:
                timeline.append(_payoff_event(d, month_index, start))
                paid[i] = True
                freed_cashflow += d.min_payment

        months.append(SimulatedMonth(
            month_index=month_index,
            available=available,
            target_debt_id=ordered[target].id if target is not None else None,
            payments=payments,
            balances={d.id: max(0.0, balances[i]) for i, d in enumerate(ordered)},
        ))

    if any(b > 0 for b in balances):
        logger.warning(
            "snowball stopped at month bound",
            extra={"max_months": max_months, "paid_off": len(timeline), "debts": len(ordered)},
        )
    else:
        logger.debug("snowball simulated", extra={"months": month_index, "debts": len(ordered)})

    return SimulationResult(
        ordered_debts=ordered,
        timeline=timeline,
        first_month_mission_payment=mission_payment,
        is_valid=True,
        total_min_payments=total_min,
        monthly_capacity=capacity,
        lump_sum=bonus,
        reference_year=start.year,
        reference_month=start.month,
        months_simulated=month_index,
        months=months,
    )
