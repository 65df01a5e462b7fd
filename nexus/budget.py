# nexus/budget.py
from datetime import date
from typing import Optional

from .schemas import BucketAllocation, BucketShare, BudgetBlueprint, BudgetBuckets, WeeklyStatus

# growth fuels debt payoff and investing, stability the emergency fund and
# insurance, rewards is guilt-free spending that rolls over
DEFAULT_ALLOCATION = BucketAllocation(growth=52, stability=31, rewards=17)


def split_budget(income: float, essentials: float,
                 allocation: Optional[BucketAllocation] = None) -> BudgetBlueprint:
    """
    Split the surplus left after essentials across the growth, stability and
    rewards buckets. Buckets are only filled in when income covers essentials
    and the allocation percentages add up to exactly 100.
    """
    alloc = allocation or DEFAULT_ALLOCATION
    income = float(income or 0.0)
    essentials = float(essentials or 0.0)

    is_valid = income > 0 and essentials > 0 and income >= essentials
    is_overspent = income > 0 and essentials > income

    if not is_valid and not is_overspent:
        return BudgetBlueprint(
            income=income, essentials=essentials, surplus=0.0,
            essentials_percentage=0.0, surplus_percentage=0.0,
            is_valid=False, is_overspent=False, total_allocation_percentage=0,
        )

    surplus = income - essentials
    ess_pct = essentials / income * 100.0
    sur_pct = 100.0 - ess_pct

    buckets = None
    if is_valid and alloc.total == 100:
        def share(pct: int) -> BucketShare:
            return BucketShare(amount=surplus * pct / 100.0, percentage=sur_pct * pct / 100.0)

        buckets = BudgetBuckets(
            essentials=BucketShare(amount=essentials, percentage=ess_pct),
            growth=share(alloc.growth),
            stability=share(alloc.stability),
            rewards=share(alloc.rewards),
        )

    return BudgetBlueprint(
        income=income,
        essentials=essentials,
        surplus=surplus,
        essentials_percentage=ess_pct,
        surplus_percentage=sur_pct,
        is_valid=is_valid,
        is_overspent=is_overspent,
        total_allocation_percentage=alloc.total,
        buckets=buckets,
    )


def days_until_reset(today: date) -> int:
    # weeks reset on Sunday; on Sunday itself the next reset is a week away
    return 7 if today.weekday() == 6 else 6 - today.weekday()


def weekly_status(weekly_budget: float, spent: float, today: date) -> WeeklyStatus:
    """Where this week's rewards spending stands against the weekly budget."""
    remaining = weekly_budget - spent
    spent_pct = spent / weekly_budget * 100.0 if weekly_budget > 0 else 0.0

    if remaining < 0:
        tier = "over"
    elif remaining == 0:
        tier = "exact"
    elif spent_pct > 80:
        tier = "caution"
    elif spent_pct > 50:
        tier = "on_track"
    else:
        tier = "plenty"

    return WeeklyStatus(
        weekly_budget=weekly_budget,
        spent=spent,
        remaining=remaining,
        spent_percentage=spent_pct,
        tier=tier,
        days_until_reset=days_until_reset(today),
    )
