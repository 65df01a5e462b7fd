# nexus/plan_utils.py
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd

from .schemas import SimulationResult, WeeklyStatus
from .utils import format_month_year, money, month_year_iter

TIMELINE_COLUMNS = ["order", "debt_id", "debt", "starting_balance", "payoff_month_index", "payoff_date"]
LEDGER_COLUMNS = ["month", "label", "debt_id", "debt", "payment", "balance", "is_target"]


def timeline_to_dataframe(result: SimulationResult) -> pd.DataFrame:
    rows = []
    for i, ev in enumerate(result.timeline, start=1):
        rows.append({
            "order": i,
            "debt_id": ev.debt_id,
            "debt": ev.debt_name,
            "starting_balance": ev.starting_balance,
            "payoff_month_index": ev.payoff_month_index,
            "payoff_date": ev.payoff_date,
        })
    if not rows:
        return pd.DataFrame(columns=TIMELINE_COLUMNS)
    return pd.DataFrame(rows)


def ledger_to_dataframe(result: SimulationResult, reference_date: Optional[date] = None) -> pd.DataFrame:
    """
    One row per (month, debt) with the payment applied and the ending balance.
    Month labels start from the month the simulation was run for.
    """
    names = {d.id: d.name for d in result.ordered_debts}
    if reference_date is not None:
        start_month, start_year = reference_date.month, reference_date.year
    elif result.reference_year is not None:
        start_month, start_year = result.reference_month, result.reference_year
    else:
        today = date.today()
        start_month, start_year = today.month, today.year
    labels = month_year_iter(start_month, start_year, len(result.months))
    rows = []
    for m, (month, year) in zip(result.months, labels):
        for debt_id, balance in m.balances.items():
            rows.append({
                "month": m.month_index,
                "label": format_month_year(year, month),
                "debt_id": debt_id,
                "debt": names.get(debt_id, debt_id),
                "payment": m.payments.get(debt_id, 0.0),
                "balance": balance,
                "is_target": debt_id == m.target_debt_id,
            })
    if not rows:
        return pd.DataFrame(columns=LEDGER_COLUMNS)
    return pd.DataFrame(rows)


def total_balance_series(result: SimulationResult) -> List[float]:
    """Total remaining balance before month 1 (after any lump sum) and after each month."""
    if not result.is_valid:
        return []
    opening = sum(d.original_amount for d in result.ordered_debts)
    opening -= min(result.lump_sum, result.ordered_debts[0].original_amount)
    series = [opening]
    for m in result.months:
        series.append(sum(m.balances.values()))
    return series


def invalid_message(result: SimulationResult, symbol: str = "$") -> Optional[str]:
    if result.is_valid:
        return None
    if result.invalid_reason == "no_debts":
        return "Add at least one debt to see your freedom timeline."
    return (
        f"Your monthly firepower ({money(result.monthly_capacity, symbol)}) isn't enough to cover "
        f"the minimum payments ({money(result.total_min_payments, symbol)}). Let's adjust the numbers."
    )


def summarize_result(result: SimulationResult, symbol: str = "$") -> Dict[str, Any]:
    """Display-ready view of a simulation, currency rounded for presentation only."""
    mission = result.timeline[0] if result.timeline else None
    out: Dict[str, Any] = {
        "is_valid": result.is_valid,
        "is_complete": result.is_complete,
        "message": invalid_message(result, symbol),
        "months_to_freedom": result.timeline[-1].payoff_month_index if result.is_complete else None,
        "final_freedom_date": result.final_freedom_date,
        "first_month_mission_payment": result.first_month_mission_payment,
        "current_mission": mission.debt_name if mission else None,
        "formatted": {
            "total_min_payments": money(result.total_min_payments, symbol),
            "monthly_capacity": money(result.monthly_capacity, symbol),
            "first_month_mission_payment": money(result.first_month_mission_payment, symbol),
            "final_freedom_date": result.final_freedom_date or "",
        },
    }
    return out



def weekly_message(status: WeeklyStatus, symbol: str = "$") -> str:
    left = money(status.remaining, symbol)
    if status.tier == "over":
        return "We've gone a bit over this week - that's okay! Next week is a fresh start."
    if status.tier == "exact":
        return "Perfect! We've used exactly our weekly budget. Great teamwork!"
    if status.tier == "caution":
        return f"We have {left} left to enjoy together this week."
    if status.tier == "on_track":
        return f"We've got {left} free to play with this week."
    return f"We have {left} ready for whatever we want this week!"
