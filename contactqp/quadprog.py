"""Dense strictly convex quadratic programming with the Goldfarb-Idnani dual method.

The problem solved is::

    min  0.5 * x^T G x + g0^T x
    s.t. CE^T x + ce0 == 0
         CI^T x + ci0 >= 0

with ``G`` of shape (n, n), ``CE`` of shape (n, p) and ``CI`` of shape (n, m).
Only the lower triangle of ``G`` is read by the Cholesky factorisation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

__all__ = ["InfeasibleProblemError", "QPSolution", "solve_quadprog"]

_EPS = float(np.finfo(float).eps)
_INF = math.inf


class InfeasibleProblemError(ValueError):
    """Raised when the constraints of the quadratic program cannot be met."""


@dataclass(frozen=True)
class QPSolution:
    """Result of :func:`solve_quadprog`.

    ``active_inequalities`` holds the indices (columns of ``CI``) of the
    inequality constraints active at the solution.  ``degenerate`` is true when
    the equality constraints turned out to be linearly dependent; the solver
    then stops early and ``x`` only satisfies the equalities added so far.
    """

    x: np.ndarray
    cost: float
    active_inequalities: tuple[int, ...]
    iterations: int
    degenerate: bool = False


def _distance(a: float, b: float) -> float:
    """Overflow-safe ``sqrt(a**2 + b**2)``."""
    a1, b1 = abs(a), abs(b)
    if a1 > b1:
        t = b1 / a1
        return a1 * math.sqrt(1.0 + t * t)
    if b1 > a1:
        t = a1 / b1
        return b1 * math.sqrt(1.0 + t * t)
    return a1 * math.sqrt(2.0)


def _diagonal_sum(matrix: np.ndarray) -> float:
    return float(matrix.diagonal().sum())


class _ActiveSet:
    """Factorisation state of the working set (matrices R and J, duals u)."""

    def __init__(self, J: np.ndarray, n_constraints: int, n_equalities: int) -> None:
        n = J.shape[0]
        self.J = J
        self.R = np.zeros((n, n))
        self.d = np.zeros(n)
        self.A = np.zeros(n_constraints + 1, dtype=int)
        self.u = np.zeros(n_constraints + 1)
        self.r = np.zeros(n_constraints + 1)
        self.iq = 0
        self.r_norm = 1.0
        self.p = n_equalities

    def step_direction(self, normal: np.ndarray) -> np.ndarray:
        """Return the primal step z and refresh the dual direction r."""
        iq = self.iq
        self.d = self.J.T @ normal
        z = self.J[:, iq:] @ self.d[iq:]
        if iq:
            self.r[:iq] = np.linalg.solve(np.triu(self.R[:iq, :iq]), self.d[:iq])
        return z

    def add_constraint(self) -> bool:
        """Append the constraint described by ``d``; False if it is degenerate."""
        J, d = self.J, self.d
        n = J.shape[0]
        for j in range(n - 1, self.iq, -1):
            cc, ss = d[j - 1], d[j]
            h = _distance(cc, ss)
            if h == 0.0:
                continue
            d[j] = 0.0
            ss /= h
            cc /= h
            if cc < 0.0:
                cc, ss = -cc, -ss
                d[j - 1] = -h
            else:
                d[j - 1] = h
            xny = ss / (1.0 + cc)
            t1 = J[:, j - 1].copy()
            t2 = J[:, j].copy()
            J[:, j - 1] = t1 * cc + t2 * ss
            J[:, j] = xny * (t1 + J[:, j - 1]) - t2
        self.iq += 1
        iq = self.iq
        self.R[:iq, iq - 1] = d[:iq]
        pivot = abs(d[iq - 1])
        if pivot <= _EPS * self.r_norm:
            return False
        self.r_norm = max(self.r_norm, pivot)
        return True

    def delete_constraint(self, constraint: int) -> None:
        """Remove an inequality constraint from the working set."""
        A, u, R, J = self.A, self.u, self.R, self.J
        iq = self.iq
        qq = next((i for i in range(self.p, iq) if A[i] == constraint), None)
        if qq is None:
            raise RuntimeError(f"constraint {constraint} is not in the active set")

        A[qq:iq - 1] = A[qq + 1:iq]
        u[qq:iq - 1] = u[qq + 1:iq]
        R[:, qq:iq - 1] = R[:, qq + 1:iq]
        A[iq - 1] = A[iq]
        u[iq - 1] = u[iq]
        A[iq] = 0
        u[iq] = 0.0
        R[:iq, iq - 1] = 0.0
        iq -= 1
        self.iq = iq
        if iq == 0:
            return

        for j in range(qq, iq):
            cc, ss = R[j, j], R[j + 1, j]
            h = _distance(cc, ss)
            if h == 0.0:
                continue
            cc /= h
            ss /= h
            R[j + 1, j] = 0.0
            if cc < 0.0:
                R[j, j] = -h
                cc, ss = -cc, -ss
            else:
                R[j, j] = h
            xny = ss / (1.0 + cc)

            t1 = R[j, j + 1:iq].copy()
            t2 = R[j + 1, j + 1:iq].copy()
            R[j, j + 1:iq] = t1 * cc + t2 * ss
            R[j + 1, j + 1:iq] = xny * (t1 + R[j, j + 1:iq]) - t2

            t1 = J[:, j].copy()
            t2 = J[:, j + 1].copy()
            J[:, j] = t1 * cc + t2 * ss
            J[:, j + 1] = xny * (J[:, j] + t1) - t2


def _constraint_matrix(matrix, offsets, n: int, name: str) -> tuple[np.ndarray, np.ndarray]:
    vec = np.array(offsets, dtype=float).reshape(-1)
    mat = np.array(matrix, dtype=float)
    if mat.size == 0:
        mat = mat.reshape(n, vec.size)
    if mat.ndim == 1 and vec.size == 1:
        mat = mat.reshape(n, 1)
    if mat.shape != (n, vec.size):
        raise ValueError(f"{name} must have shape ({n}, {vec.size}), got {mat.shape}")
    return mat, vec


def solve_quadprog(G, g0, CE, ce0, CI, ci0) -> QPSolution:
    """Solve the quadratic program; inputs are left unmodified.

    Raises :class:`InfeasibleProblemError` when the problem has no solution
    and :class:`ValueError` for mis-shaped inputs or a ``G`` that is not
    positive definite.
    """
    g0 = np.array(g0, dtype=float).reshape(-1)
    n = g0.size
    G = np.array(G, dtype=float)
    if G.shape != (n, n):
        raise ValueError(f"G must have shape ({n}, {n}), got {G.shape}")
    CE, ce0 = _constraint_matrix(CE, ce0, n, "CE")
    CI, ci0 = _constraint_matrix(CI, ci0, n, "CI")
    me = ce0.size
    mi = ci0.size

    try:
        L = np.linalg.cholesky(G)
    except np.linalg.LinAlgError as exc:
        raise ValueError("G must be positive definite") from exc

    c1 = _diagonal_sum(G)
    J = np.linalg.solve(L.T, np.eye(n))
    c2 = _diagonal_sum(J)

    # Unconstrained minimiser: a feasible point of the dual problem.
    x = -np.linalg.solve(L.T, np.linalg.solve(L, g0))
    f_value = 0.5 * float(g0 @ x)

    state = _ActiveSet(J, mi + me, me)
    A, u, r = state.A, state.u, state.r

    for i in range(me):
        normal = CE[:, i]
        z = state.step_direction(normal)
        iq = state.iq
        t2 = 0.0
        if abs(z @ z) > _EPS:
            t2 = (-(normal @ x) - ce0[i]) / (z @ normal)
        x = x + t2 * z
        u[iq] = t2
        u[:iq] -= t2 * r[:iq]
        f_value += 0.5 * t2 * t2 * float(z @ normal)
        A[i] = -i - 1
        if not state.add_constraint():
            return QPSolution(x, f_value, (), 0, degenerate=True)

    def finish(iterations: int) -> QPSolution:
        active = tuple(int(a) for a in A[me:state.iq])
        return QPSolution(x, float(f_value), active, iterations)

    iai = np.zeros(mi + me + 1, dtype=int)
    iai[:mi] = np.arange(mi)
    iaexcl = np.ones(mi + me + 1, dtype=bool)
    s = np.zeros(mi + me + 1)
    iterations = 0

    while True:  # step 1: choose a violated constraint
        iterations += 1
        for i in range(me, state.iq):
            iai[A[i]] = -1

        iaexcl[:mi] = True
        s[:mi] = CI.T @ x + ci0
        psi = float(np.minimum(s[:mi], 0.0).sum())
        if abs(psi) <= mi * _EPS * c1 * c2 * 100.0:
            return finish(iterations)

        iq = state.iq
        u_old = u[:iq].copy()
        a_old = A[:iq].copy()
        x_old = x.copy()
        ss = 0.0
        ip = 0

        restart = False
        while not restart:  # step 2: pick the most violated constraint
            for i in range(mi):
                if s[i] < ss and iai[i] != -1 and iaexcl[i]:
                    ss = s[i]
                    ip = i
            if ss >= 0.0:
                return finish(iterations)

            normal = CI[:, ip]
            u[state.iq] = 0.0
            A[state.iq] = ip

            while True:  # step 2a: step direction and length
                z = state.step_direction(normal)
                iq = state.iq

                drop = 0
                t1 = _INF
                for k in range(me, iq):
                    if r[k] > 0.0:
                        ratio = u[k] / r[k]
                        if ratio < t1:
                            t1 = ratio
                            drop = int(A[k])

                t2 = -s[ip] / (z @ normal) if abs(z @ z) > _EPS else _INF
                t = min(t1, t2)

                if t >= _INF:
                    raise InfeasibleProblemError("the quadratic program is infeasible")

                if t2 >= _INF:
                    # Step in dual space only.
                    u[:iq] -= t * r[:iq]
                    u[iq] += t
                    iai[drop] = drop
                    state.delete_constraint(drop)
                    continue

                x = x + t * z
                f_value += t * float(z @ normal) * (0.5 * t + u[iq])
                u[:iq] -= t * r[:iq]
                u[iq] += t

                if t == t2:
                    if state.add_constraint():
                        iai[ip] = -1
                        restart = True
                        break
                    iaexcl[ip] = False
                    state.delete_constraint(ip)
                    iai[:mi] = np.arange(mi)
                    restored = state.iq
                    A[:restored] = a_old[:restored]
                    u[:restored] = u_old[:restored]
                    for a in A[:restored]:
                        if a >= 0:
                            iai[a] = -1
                    x = x_old.copy()
                    break

                # Partial step: drop the blocking constraint and retry.
                iai[drop] = drop
                state.delete_constraint(drop)
                s[ip] = CI[:, ip] @ x + ci0[ip]