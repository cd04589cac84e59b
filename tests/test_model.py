"""Coupled derivative and Jacobian tests."""

from __future__ import annotations

import numpy as np
import pytest

from aquifer1d.grid import Grid1D
from aquifer1d.model import (
    SPECIES,
    derivative,
    interpolate_state,
    jacobian,
    pack_state,
    residual,
    split_state,
    state_size,
)
from aquifer1d.parameters import ParameterSet
from aquifer1d.solver import fd_jacobian


pytestmark = pytest.mark.unit


def test_split_and_pack_state() -> None:
    C = np.arange(15, dtype=float)
    parts = split_state(C, 3)
    assert tuple(parts) == SPECIES
    np.testing.assert_array_equal(parts["O2"], [3.0, 4.0, 5.0])
    np.testing.assert_array_equal(pack_state(parts), C)

    with pytest.raises(ValueError, match="shape"):
        split_state(np.zeros(14), 3)
    with pytest.raises(ValueError, match="Missing species"):
        pack_state({"DON": np.zeros(3)})


def test_interpolate_state_keeps_linear_profiles() -> None:
    coarse = Grid1D.from_domain(L_m=10.0, N=5)
    fine = Grid1D.from_domain(L_m=10.0, N=10)
    C = pack_state({name: 0.1 * (k + 1) * coarse.x_m for k, name in enumerate(SPECIES)})

    out = split_state(interpolate_state(C, coarse, fine), fine.N)
    inside = (fine.x_m >= coarse.x_m[0]) & (fine.x_m <= coarse.x_m[-1])
    np.testing.assert_allclose(out["NO3"][inside], 0.3 * fine.x_m[inside], rtol=1.0e-12)


def test_zero_state_derivative_on_five_cells() -> None:
    p = ParameterSet()
    grid = Grid1D.from_domain(L_m=5.0, N=5)
    res = derivative(0.0, np.zeros(state_size(grid)), p, grid)
    parts = split_state(res.dCdt, grid.N)

    inflow = p.v_adv / grid.dx_m
    np.testing.assert_allclose(parts["DON"], [inflow * p.riverDON, 0, 0, 0, 0], atol=1.0e-15)
    np.testing.assert_allclose(parts["NO3"], [inflow * p.riverNO3, 0, 0, 0, 0], atol=1.0e-15)
    np.testing.assert_allclose(parts["NH3"], [inflow * p.riverNH3, 0, 0, 0, 0], atol=1.0e-15)
    np.testing.assert_allclose(parts["N2"], 0.0, atol=1.0e-15)
    expected_o2 = np.full(5, p.r_aera * p.O2_sol)
    expected_o2[0] += inflow * p.riverO2
    np.testing.assert_allclose(parts["O2"], expected_o2, rtol=1.0e-14)

    assert res.totals["aeration"] == pytest.approx(p.r_aera * p.O2_sol * grid.L_m * p.por)
    assert res.totals["aerobic_mineralization"] == 0.0
    assert res.totals["denitrification"] == 0.0
    assert res.totals["nitrification"] == 0.0
    assert res.fluxes["DON_flux_up"] == pytest.approx(p.por * p.v_adv * p.riverDON)
    assert res.fluxes["N2_flux_up"] == 0.0
    assert set(res.fluxes) == {f"{s}_flux_{side}" for s in SPECIES for side in ("up", "down")}


def test_zero_state_without_aeration_is_pure_inflow() -> None:
    p = ParameterSet(r_aera=0.0)
    grid = Grid1D.from_domain(L_m=5.0, N=5)
    parts = split_state(residual(np.zeros(25), p, grid), grid.N)
    np.testing.assert_allclose(parts["O2"], [p.riverO2 * p.v_adv / grid.dx_m, 0, 0, 0, 0], atol=1.0e-15)


def test_reaction_terms_follow_stoichiometry() -> None:
    """With v -> tiny and a=0 the derivative is the reaction part only."""
    p = ParameterSet(v_adv=1.0e-12, a=0.0)
    grid = Grid1D.from_domain(L_m=1.0, N=1)
    C = np.array([0.2, 0.05, 0.1, 0.02, 0.0])
    res = derivative(None, C, p, grid)
    r = {name: float(values[0]) for name, values in res.rates.as_dict().items()}

    dDON, dO2, dNO3, dNH3, dN2 = res.dCdt
    assert dDON == pytest.approx(-r["aeroMin"] - r["denitri"], abs=1.0e-12)
    assert dO2 == pytest.approx(r["aeration"] - r["aeroMin"] - 2.0 * r["nitri"], abs=1.0e-12)
    assert dNO3 == pytest.approx(-0.8 * r["denitri"] + r["nitri"], abs=1.0e-12)
    assert dNH3 == pytest.approx((r["aeroMin"] + r["denitri"]) * 16.0 / 106.0 - r["nitri"], abs=1.0e-12)
    assert dN2 == pytest.approx(0.4 * r["denitri"], abs=1.0e-12)


@pytest.mark.parametrize("workers", [1, 3])
def test_analytic_jacobian_matches_finite_differences(workers: int) -> None:
    p = ParameterSet()
    grid = Grid1D.from_domain(L_m=12.0, N=12)
    rng = np.random.default_rng(11)
    C = rng.uniform(0.05, 0.4, state_size(grid))

    J = jacobian(C, p, grid).toarray()
    J_fd = fd_jacobian(C, p, grid, workers=workers).toarray()

    assert J.shape == (60, 60)
    np.testing.assert_allclose(J, J_fd, rtol=1.0e-5, atol=1.0e-5)


def test_jacobian_is_sparse_block_tridiagonal() -> None:
    p = ParameterSet()
    grid = Grid1D.from_domain(L_m=20.0, N=20)
    J = jacobian(np.full(state_size(grid), 0.1), p, grid)
    # per row: at most 3 transport entries plus 4 reaction couplings
    assert J.nnz <= state_size(grid) * 7
