# nexus/schemas.py
import uuid
from typing import Optional, List, Dict

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field

from .utils import format_month_year


def _new_debt_id() -> str:
    return f"debt_{uuid.uuid4().hex[:9]}"


class Debt(BaseModel):
    """
    A debt as entered by the couple. Accepts either the snake_case field
    names or the camelCase keys the browser app stores:
     - original_amount | originalAmount | amount
     - min_payment | minPayment
    Instances are frozen; the simulator works on its own balances.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=_new_debt_id)
    name: str
    original_amount: float = Field(
        gt=0.0,
        validation_alias=AliasChoices("original_amount", "originalAmount", "amount"),
    )
    min_payment: float = Field(
        gt=0.0,
        validation_alias=AliasChoices("min_payment", "minPayment"),
    )


class PayoffEvent(BaseModel):
    debt_id: str
    debt_name: str
    payoff_month_index: int = Field(ge=1)
    payoff_year: int
    payoff_month: int = Field(ge=1, le=12)
    starting_balance: float

    @computed_field
    @property
    def payoff_date(self) -> str:
        return format_month_year(self.payoff_year, self.payoff_month)


class SimulatedMonth(BaseModel):
    """One row of the month-by-month ledger (balances clamped at 0)."""
    month_index: int
    available: float
    target_debt_id: Optional[str] = None
    payments: Dict[str, float]
    balances: Dict[str, float]


class SimulationResult(BaseModel):
    ordered_debts: List[Debt]
    timeline: List[PayoffEvent]
    first_month_mission_payment: float
    is_valid: bool
    invalid_reason: Optional[str] = None  # "no_debts" | "insufficient_capacity"
    total_min_payments: float
    monthly_capacity: float
    lump_sum: float
    months_simulated: int = 0
    reference_year: Optional[int] = None
    reference_month: Optional[int] = None
    months: List[SimulatedMonth] = Field(default_factory=list)

    @computed_field
    @property
    def final_freedom_date(self) -> Optional[str]:
        if not self.timeline:
            return None
        return self.timeline[-1].payoff_date

    @property
    def is_complete(self) -> bool:
        # False when the month bound cut the run short
        return self.is_valid and len(self.timeline) == len(self.ordered_debts)


# Bucket splitter
WEEKS_PER_MONTH = 4.33


class BucketAllocation(BaseModel):
    growth: int = 52
    stability: int = 31
    rewards: int = 17

    @property
    def total(self) -> int:
        return self.growth + self.stability + self.rewards


class BucketShare(BaseModel):
    amount: float
    percentage: float


class BudgetBuckets(BaseModel):
    essentials: BucketShare
    growth: BucketShare
    stability: BucketShare
    rewards: BucketShare


class BudgetBlueprint(BaseModel):
    income: float
    essentials: float
    surplus: float
    essentials_percentage: float
    surplus_percentage: float
    is_valid: bool
    is_overspent: bool
    total_allocation_percentage: int
    buckets: Optional[BudgetBuckets] = None

    @property
    def monthly_capacity(self) -> float:
        """Growth bucket amount, the firepower handed to the snowball."""
        return self.buckets.growth.amount if self.buckets else 0.0

    @property
    def weekly_spendable(self) -> float:
        """Guilt-free weekly spending: the rewards bucket spread over an average month."""
        return self.buckets.rewards.amount / WEEKS_PER_MONTH if self.buckets else 0.0


class WeeklyStatus(BaseModel):
    weekly_budget: float
    spent: float
    remaining: float
    spent_percentage: float
    tier: str  # "over" | "exact" | "caution" | "on_track" | "plenty"
    days_until_reset: int = Field(ge=1, le=7)
