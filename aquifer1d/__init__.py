"""aquifer1d: steady-state reactive transport of nitrogen species along a 1D aquifer."""

from .budget import BUDGET_KEYS, budget, nitrogen_balance, species_balance
from .errors import (
    DeckError,
    InvalidGridError,
    InvalidParameterError,
    NonConvergenceError,
    NonPhysicalStateError,
    NumericalInstabilityError,
    SolverError,
)
from .grid import Grid1D
from .model import SPECIES, DerivativeResult, derivative, jacobian, pack_state, split_state
from .parameters import ParameterSet
from .reactions import ReactionRates, reaction_rates
from .solver import SolverOptions, SteadyState, solve_steady_state
from .transport import TransportResult, transport_operator

__version__ = "0.1.0"

__all__ = [
    "BUDGET_KEYS",
    "DeckError",
    "DerivativeResult",
    "Grid1D",
    "InvalidGridError",
    "InvalidParameterError",
    "NonConvergenceError",
    "NonPhysicalStateError",
    "NumericalInstabilityError",
    "ParameterSet",
    "ReactionRates",
    "SPECIES",
    "SolverError",
    "SolverOptions",
    "SteadyState",
    "TransportResult",
    "budget",
    "derivative",
    "jacobian",
    "nitrogen_balance",
    "pack_state",
    "reaction_rates",
    "solve_steady_state",
    "species_balance",
    "split_state",
    "transport_operator",
]
