import logging
import time
from datetime import date
from typing import List, Dict, Any, Optional, Tuple, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError

from nexus.budget import split_budget, weekly_status
from nexus.config import get_settings
from nexus.logging_setup import setup_logging
from nexus.plan_utils import invalid_message, summarize_result, total_balance_series, weekly_message
from nexus.schemas import BucketAllocation, Debt
from nexus.snowball import simulate, total_minimum_payments
from nexus.utils import money, parse_amount

settings = get_settings()
setup_logging(settings.log_level)
logger = logging.getLogger("nexus.api")

# ======================================
# App + CORS
# ======================================
app = FastAPI(
    title="Nexus Debt Snowball",
    description="Budget buckets and debt freedom timelines for couples",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

DEFAULT_DEBTS = [
    {"name": "Zip", "amount": 1741.81, "minPayment": 86.60},
    {"name": "Credit Card", "amount": 4200.00, "minPayment": 120.00},
    {"name": "Car Loan", "amount": 9800.00, "minPayment": 310.00},
]

Amount = Union[float, str, None]


# ======================================
# Models
# ======================================
class SimulateRequest(BaseModel):
    debts: List[Dict[str, Any]] = []
    monthly_capacity: Amount = None
    lump_sum: Amount = None
    reference_date: Optional[date] = None


class BudgetRequest(BaseModel):
    income: Amount = None
    essentials: Amount = None
    allocation: Optional[BucketAllocation] = None


class BudgetPlanRequest(BudgetRequest):
    debts: List[Dict[str, Any]] = []
    lump_sum: Amount = None
    reference_date: Optional[date] = None


class WeeklySpendingRequest(BaseModel):
    weekly_budget: Amount = None
    spent: Amount = None
    today: Optional[date] = None


# ======================================
# Helpers
# ======================================
def parse_debts(raw: List[Dict[str, Any]]) -> Tuple[List[Debt], Optional[str]]:
    debts = []
    for i, d in enumerate(raw):
        try:
            debts.append(Debt(**d))
        except ValidationError as e:
            name = d.get("name") or f"#{i + 1}"
            first = e.errors()[0]
            field = ".".join(str(x) for x in first["loc"])
            return [], f"Invalid debt '{name}': {field} {first['msg']}"
    return debts, None


def _simulation_payload(debts: List[Debt], capacity: float, lump: float,
                        reference_date: Optional[date]) -> Dict[str, Any]:
    result = simulate(debts, capacity, lump, reference_date=reference_date,
                      max_months=settings.max_months)
    if not result.is_valid:
        logger.info("simulation rejected", extra={"reason": result.invalid_reason})
        raise HTTPException(
            status_code=400,
            detail={"reason": result.invalid_reason,
                    "message": invalid_message(result, settings.currency_symbol)},
        )

    logger.info("simulation completed", extra={
        "debts": len(debts),
        "months": result.months_simulated,
        "complete": result.is_complete,
    })
    return {
        "success": True,
        "summary": summarize_result(result, settings.currency_symbol),
        "ordered_debts": [d.model_dump() for d in result.ordered_debts],
        "timeline": [
            {**ev.model_dump(), "formatted_balance": money(ev.starting_balance, settings.currency_symbol)}
            for ev in result.timeline
        ],
        "balance_series": total_balance_series(result),
    }


# ======================================
# Routes
# ======================================
@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "message": "Nexus API is running!", "timestamp": time.time()}


@app.post("/api/snowball/simulate")
async def simulate_snowball(request: SimulateRequest):
    debts, error = parse_debts(request.debts)
    if error:
        raise HTTPException(status_code=400, detail={"reason": "invalid_debt", "message": error})
    return _simulation_payload(
        debts,
        parse_amount(request.monthly_capacity),
        parse_amount(request.lump_sum),
        request.reference_date,
    )


@app.post("/api/budget/split")
async def budget_split(request: BudgetRequest):
    blueprint = split_budget(parse_amount(request.income), parse_amount(request.essentials), request.allocation)
    payload = blueprint.model_dump()
    payload["monthly_capacity"] = blueprint.monthly_capacity
    payload["weekly_spendable"] = blueprint.weekly_spendable
    payload["formatted"] = {
        "surplus": money(blueprint.surplus, settings.currency_symbol),
        "monthly_capacity": money(blueprint.monthly_capacity, settings.currency_symbol),
        "weekly_spendable": money(blueprint.weekly_spendable, settings.currency_symbol),
    }
    return payload


@app.post("/api/plans/from-budget")
async def plan_from_budget(request: BudgetPlanRequest):
    blueprint = split_budget(parse_amount(request.income), parse_amount(request.essentials), request.allocation)
    if blueprint.buckets is None:
        if blueprint.is_overspent:
            msg = "Essentials are higher than income. Trim essentials before planning debt payoff."
        elif blueprint.is_valid:
            msg = f"Bucket percentages add up to {blueprint.total_allocation_percentage}%, they need to total 100%."
        else:
            msg = "Enter both income and essentials to build your budget."
        raise HTTPException(status_code=400, detail={"reason": "invalid_budget", "message": msg})

    debts, error = parse_debts(request.debts)
    if error:
        raise HTTPException(status_code=400, detail={"reason": "invalid_debt", "message": error})

    payload = _simulation_payload(debts, blueprint.monthly_capacity,
                                  parse_amount(request.lump_sum), request.reference_date)
    payload["budget"] = blueprint.model_dump()
    return payload


@app.post("/api/spending/weekly")
async def weekly_spending(request: WeeklySpendingRequest):
    status = weekly_status(
        parse_amount(request.weekly_budget),
        parse_amount(request.spent),
        request.today or date.today(),
    )
    payload = status.model_dump()
    payload["message"] = weekly_message(status, settings.currency_symbol)
    return payload


@app.get("/api/defaults/debts")
async def get_default_debts():
    return {
        "debts": DEFAULT_DEBTS,
        "total_min_payments": total_minimum_payments(Debt(**d) for d in DEFAULT_DEBTS),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
