#tests/test_snowball.py
from datetime import date

import pytest
from pydantic import ValidationError

from nexus.schemas import Debt
from nexus.snowball import order_debts, simulate, total_minimum_payments

REF = date(2025, 1, 15)


def scenario_a_debts():
    return [
        Debt(id="big", name="Car Loan", amount=2000, minPayment=100),
        Debt(id="small", name="Zip", amount=1000, minPayment=50),
    ]


def mixed_debts():
    return [
        Debt(id="card", name="Credit Card", amount=4200.00, minPayment=120.00),
        Debt(id="zip", name="Zip", amount=1741.81, minPayment=86.60),
        Debt(id="car", name="Car Loan", amount=9800.00, minPayment=310.00),
        Debt(id="afterpay", name="Afterpay", amount=640.00, minPayment=40.00),
    ]


def payments_per_debt(result):
    totals = {d.id: 0.0 for d in result.ordered_debts}
    for m in result.months:
        for debt_id, pay in m.payments.items():
            totals[debt_id] += pay
    return totals


def test_ordering_is_ascending_and_stable_on_ties():
    debts = [
        Debt(id="x", name="X", amount=300, minPayment=10),
        Debt(id="first", name="First", amount=100, minPayment=10),
        Debt(id="second", name="Second", amount=100, minPayment=10),
    ]
    result = simulate(debts, 100, reference_date=REF)
    assert [d.id for d in result.ordered_debts] == ["first", "second", "x"]
    assert [d.id for d in order_debts(debts)] == ["first", "second", "x"]


def test_validity_gate():
    debts = scenario_a_debts()
    mins = total_minimum_payments(debts)
    assert mins == 150
    assert simulate([], 500, 100).is_valid is False
    assert simulate([], 500, 100).invalid_reason == "no_debts"
    below = simulate(debts, mins - 0.01, 0)
    assert below.is_valid is False
    assert below.invalid_reason == "insufficient_capacity"
    assert simulate(debts, mins, 0, reference_date=REF).is_valid is True


def test_scenario_a_small_debt_first():
    result = simulate(scenario_a_debts(), 200, 0, reference_date=REF)
    assert result.is_valid
    assert result.first_month_mission_payment == pytest.approx(100)
    assert [ev.debt_id for ev in result.timeline] == ["small", "big"]
    assert len(result.timeline) == 2
    small, big = result.timeline
    assert small.payoff_month_index == 10
    # freed 50 rolls in: 250/month against the remaining 1000
    assert big.payoff_month_index == 14
    assert small.payoff_date == "October 2025"
    assert big.payoff_date == "February 2026"
    assert result.final_freedom_date == "February 2026"


def test_scenario_b_capacity_equals_minimums():
    debts = [Debt(id="only", name="Only", amount=500, minPayment=50)]
    result = simulate(debts, 50, 0, reference_date=REF)
    assert result.is_valid
    assert result.first_month_mission_payment == pytest.approx(50)
    assert result.timeline[0].payoff_month_index == 10
    assert result.months_simulated == 10


def test_scenario_c_lump_sum_clears_debt_before_month_one():
    debts = [Debt(id="only", name="Only", amount=1000, minPayment=100)]
    result = simulate(debts, 100, 1000, reference_date=REF)
    assert result.timeline[0].payoff_month_index == 1
    assert result.timeline[0].payoff_date == "January 2025"
    assert result.months_simulated == 0
    assert result.first_month_mission_payment == 0.0


def test_scenario_d_insufficient_capacity_returns_empty_timeline():
    result = simulate(scenario_a_debts(), 100, 0, reference_date=REF)
    assert result.is_valid is False
    assert result.timeline == []
    assert result.months == []
    assert result.final_freedom_date is None
    assert result.total_min_payments == 150


def test_lump_sum_payoff_frees_minimum_into_month_one():
    debts = [
        Debt(id="a", name="A", amount=100, minPayment=50),
        Debt(id="b", name="B", amount=1000, minPayment=100),
    ]
    result = simulate(debts, 150, 100, reference_date=REF)
    assert result.timeline[0].debt_id == "a"
    assert result.timeline[0].payoff_month_index == 1
    assert result.months[0].available == pytest.approx(200)
    assert result.first_month_mission_payment == pytest.approx(200)
    assert result.timeline[1].payoff_month_index == 5


def test_partial_lump_sum_and_conservation():
    debts = [
        Debt(id="a", name="A", amount=500, minPayment=50),
        Debt(id="b", name="B", amount=1000, minPayment=100),
    ]
    result = simulate(debts, 200, 300, reference_date=REF)
    assert [(ev.debt_id, ev.payoff_month_index) for ev in result.timeline] == [("a", 2), ("b", 6)]
    totals = payments_per_debt(result)
    assert totals["a"] == pytest.approx(200)
    assert totals["b"] == pytest.approx(1000)


def test_lump_sum_larger_than_first_debt_is_clamped_in_conservation():
    debts = [
        Debt(id="a", name="A", amount=100, minPayment=20),
        Debt(id="b", name="B", amount=400, minPayment=40),
    ]
    result = simulate(debts, 60, 250, reference_date=REF)
    totals = payments_per_debt(result)
    assert totals["a"] == 0.0
    assert totals["b"] == pytest.approx(400)


def test_conservation_and_monotonicity_on_mixed_debts():
    debts = mixed_debts()
    result = simulate(debts, 900, 250, reference_date=REF)
    assert result.is_complete
    totals = payments_per_debt(result)
    for d in debts:
        expected = d.original_amount - (250 if d.id == "afterpay" else 0)
        assert totals[d.id] == pytest.approx(expected)

    previous = {d.id: d.original_amount for d in debts}
    previous["afterpay"] -= 250
    for m in result.months:
        for debt_id, bal in m.balances.items():
            assert bal >= 0
            assert bal <= previous[debt_id] + 1e-9
            previous[debt_id] = bal


def test_completeness_and_chronological_timeline():
    debts = mixed_debts()
    result = simulate(debts, total_minimum_payments(debts), 0, reference_date=REF)
    assert len(result.timeline) == len(debts)
    indices = [ev.payoff_month_index for ev in result.timeline]
    assert indices == sorted(indices)
    assert [ev.debt_id for ev in result.timeline] == ["afterpay", "zip", "card", "car"]


def test_same_month_payoffs_follow_sort_order():
    debts = [
        Debt(id="later", name="Later", amount=100, minPayment=50),
        Debt(id="earlier", name="Earlier", amount=100, minPayment=50),
    ]
    result = simulate(debts, 100, 0, reference_date=REF)
    assert [(ev.debt_id, ev.payoff_month_index) for ev in result.timeline] == [("later", 2), ("earlier", 2)]


def test_non_target_minimum_is_clamped_to_balance():
    debts = [
        Debt(id="target", name="Target", amount=100, minPayment=10),
        Debt(id="tail", name="Tail", amount=150, minPayment=100),
    ]
    result = simulate(debts, 110, 0, reference_date=REF)
    # month 2: tail only owes 50, the rest of the pool goes to the target
    assert result.months[1].payments["tail"] == pytest.approx(50)
    assert result.months[1].payments["target"] == pytest.approx(60)
    # tail runs out on its minimums before the target does
    assert [(ev.debt_id, ev.payoff_month_index) for ev in result.timeline] == [("tail", 2), ("target", 3)]
    assert result.months[2].available == pytest.approx(210)


def test_target_payment_is_clamped_to_balance():
    debts = [Debt(id="only", name="Only", amount=120, minPayment=50)]
    result = simulate(debts, 100, 0, reference_date=REF)
    assert [m.payments["only"] for m in result.months] == [100, 20]


def test_month_bound_returns_partial_timeline():
    result = simulate(scenario_a_debts(), 200, 0, reference_date=REF, max_months=3)
    assert result.is_valid
    assert result.months_simulated == 3
    assert result.timeline == []
    assert result.is_complete is False


def test_payoff_date_rolls_over_year():
    debts = [Debt(id="only", name="Only", amount=500, minPayment=50)]
    result = simulate(debts, 50, 0, reference_date=date(2025, 11, 1))
    ev = result.timeline[0]
    assert (ev.payoff_year, ev.payoff_month) == (2026, 8)
    assert ev.payoff_date == "August 2026"


def test_simulation_is_idempotent():
    debts = mixed_debts()
    first = simulate(debts, 1000, 500, reference_date=REF)
    second = simulate(debts, 1000, 500, reference_date=REF)
    assert first == second
    assert first.model_dump() == second.model_dump()


def test_negative_or_missing_lump_sum_is_ignored():
    debts = scenario_a_debts()
    base = simulate(debts, 200, 0, reference_date=REF)
    assert simulate(debts, 200, -500, reference_date=REF).timeline == base.timeline
    assert simulate(debts, 200, None, reference_date=REF).timeline == base.timeline


def test_inputs_are_not_mutated():
    debts = scenario_a_debts()
    simulate(debts, 200, 300, reference_date=REF)
    assert [d.original_amount for d in debts] == [2000, 1000]


def test_debt_rejects_non_positive_amounts():
    with pytest.raises(ValidationError):
        Debt(name="Zero", amount=0, minPayment=10)
    with pytest.raises(ValidationError):
        Debt(name="NoMin", amount=100, minPayment=0)


def test_debt_accepts_snake_and_camel_case():
    a = Debt(id="d", name="D", original_amount=10, min_payment=1)
    b = Debt(id="d", name="D", originalAmount=10, minPayment=1)
    assert a == b
    assert Debt(name="Auto", amount=1, minPayment=1).id.startswith("debt_")


def test_nan_capacity_is_rejected():
    result = simulate(scenario_a_debts(), float("nan"), 0, reference_date=REF)
    assert result.is_valid is False
    assert result.invalid_reason == "insufficient_capacity"
    assert result.timeline == []


def test_result_records_reference_month():
    result = simulate(scenario_a_debts(), 200, 0, reference_date=date(2025, 11, 30))
    assert (result.reference_year, result.reference_month) == (2025, 11)
