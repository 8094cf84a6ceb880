import numpy as np
import pytest

from contactqp.quadprog import InfeasibleProblemError, QPSolution, solve_quadprog


def _cost(G, g0, x):
    return 0.5 * x @ G @ x + g0 @ x


def _empty(n):
    return np.zeros((n, 0)), np.zeros(0)


def test_worked_example_is_feasible():
    G = np.array([[2.1, 0.0, 1.0], [1.5, 2.2, 0.0], [1.2, 1.3, 3.1]])
    g0 = np.array([6.0, 1.0, 1.0])
    CE = np.array([[1.0], [2.0], [-1.0]])
    ce0 = np.array([-4.0])
    CI = np.array([[1.0, 0.0, 0.0, -1.0], [0.0, 1.0, 0.0, -1.0], [0.0, 0.0, 1.0, 0.0]])
    ci0 = np.array([0.0, 0.0, 0.0, 10.0])
    sol = solve_quadprog(G, g0, CE, ce0, CI, ci0)
    assert isinstance(sol, QPSolution)
    assert np.allclose(CE.T @ sol.x + ce0, 0.0, atol=1e-9)
    assert np.all(CI.T @ sol.x + ci0 >= -1e-9)
    assert not sol.degenerate


def test_unconstrained_minimum():
    G = np.array([[4.0, 1.0], [1.0, 3.0]])
    g0 = np.array([1.0, -2.0])
    CE, ce0 = _empty(2)
    CI, ci0 = _empty(2)
    sol = solve_quadprog(G, g0, CE, ce0, CI, ci0)
    assert np.allclose(G @ sol.x, -g0)
    assert sol.cost == pytest.approx(_cost(G, g0, sol.x))
    assert sol.active_inequalities == ()


def test_inactive_inequality_does_not_change_solution():
    G = np.eye(2)
    g0 = np.array([-1.0, -2.0])
    CE, ce0 = _empty(2)
    CI = np.array([[1.0], [0.0]])
    ci0 = np.array([5.0])
    sol = solve_quadprog(G, g0, CE, ce0, CI, ci0)
    assert np.allclose(sol.x, -g0)
    assert sol.active_inequalities == ()


def test_binding_inequality_projects_onto_halfspace():
    target = np.array([3.0, 2.0])
    CE, ce0 = _empty(2)
    CI = np.array([[-1.0], [0.0]])  # x0 <= 1
    ci0 = np.array([1.0])
    sol = solve_quadprog(np.eye(2), -target, CE, ce0, CI, ci0)
    assert np.allclose(sol.x, [1.0, target[1]])
    assert sol.active_inequalities == (0,)


def test_equality_constraint_minimum_norm():
    CE = np.array([[1.0], [1.0]])
    ce0 = np.array([-1.0])
    CI, ci0 = _empty(2)
    sol = solve_quadprog(np.eye(2), np.zeros(2), CE, ce0, CI, ci0)
    assert np.allclose(sol.x, [0.5, 0.5])
    assert sol.cost == pytest.approx(_cost(np.eye(2), np.zeros(2), sol.x))


def test_mixed_constraints_beat_feasible_samples():
    G = np.array([[4.0, 1.0], [1.0, 2.0]])
    g0 = np.array([1.0, 1.0])
    CE = np.array([[1.0], [1.0]])
    ce0 = np.array([-1.0])
    CI = np.eye(2)
    ci0 = np.zeros(2)
    sol = solve_quadprog(G, g0, CE, ce0, CI, ci0)
    assert sol.cost == pytest.approx(_cost(G, g0, sol.x))
    assert np.all(sol.x >= -1e-9)
    assert sol.x.sum() == pytest.approx(1.0)
    for t in np.linspace(0.0, 1.0, 101):
        candidate = np.array([t, 1.0 - t])
        assert _cost(G, g0, candidate) >= sol.cost - 1e-9


def test_many_inequalities_random_feasibility():
    rng = np.random.default_rng(7)
    n, m = 4, 6
    M = rng.normal(size=(n, n))
    G = M @ M.T + n * np.eye(n)
    g0 = rng.normal(size=n)
    CI = rng.normal(size=(n, m))
    ci0 = np.abs(rng.normal(size=m))  # x = 0 is feasible
    CE, ce0 = _empty(n)
    sol = solve_quadprog(G, g0, CE, ce0, CI, ci0)
    assert np.all(CI.T @ sol.x + ci0 >= -1e-8)
    assert sol.cost <= _cost(G, g0, np.zeros(n)) + 1e-9
    for idx in sol.active_inequalities:
        assert CI[:, idx] @ sol.x + ci0[idx] == pytest.approx(0.0, abs=1e-8)


def test_infeasible_problem_raises():
    CE, ce0 = _empty(1)
    CI = np.array([[1.0, -1.0]])  # x >= 1 and x <= 0
    ci0 = np.array([-1.0, 0.0])
    with pytest.raises(InfeasibleProblemError):
        solve_quadprog(np.eye(1), np.zeros(1), CE, ce0, CI, ci0)


def test_dependent_equalities_are_flagged_degenerate():
    CE = np.array([[1.0, 1.0], [1.0, 1.0]])
    ce0 = np.array([-1.0, -1.0])
    CI, ci0 = _empty(2)
    sol = solve_quadprog(np.eye(2), np.zeros(2), CE, ce0, CI, ci0)
    assert sol.degenerate is True
    assert np.allclose(CE[:, 0] @ sol.x + ce0[0], 0.0)


def test_inputs_are_not_modified():
    G = np.array([[2.0, 0.5], [0.5, 1.0]])
    g0 = np.array([1.0, -1.0])
    CE = np.array([[1.0], [-1.0]])
    ce0 = np.array([0.5])
    CI = np.eye(2)
    ci0 = np.array([1.0, 1.0])
    copies = [a.copy() for a in (G, g0, CE, ce0, CI, ci0)]
    solve_quadprog(G, g0, CE, ce0, CI, ci0)
    for original, copy in zip((G, g0, CE, ce0, CI, ci0), copies):
        assert np.array_equal(original, copy)


def test_non_positive_definite_matrix_rejected():
    CE, ce0 = _empty(2)
    CI, ci0 = _empty(2)
    with pytest.raises(ValueError):
        solve_quadprog(np.array([[1.0, 0.0], [0.0, -1.0]]), np.zeros(2), CE, ce0, CI, ci0)


def test_shape_mismatch_rejected():
    CI, ci0 = _empty(2)
    with pytest.raises(ValueError):
        solve_quadprog(np.eye(2), np.zeros(2), np.ones((3, 1)), np.zeros(1), CI, ci0)