from .budget import split_budget
from .schemas import Debt, PayoffEvent, SimulationResult
from .snowball import simulate

__all__ = ["Debt", "PayoffEvent", "SimulationResult", "simulate", "split_budget"]
