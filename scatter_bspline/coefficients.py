"""
Least-squares solves for the B-spline control point coefficients.

All strategies solve the normal equations ``(A^T A + alpha P) c = A^T y``
for the design matrix ``A`` and differ only in the penalty ``P``:

- ``Smoothing.NONE``: no penalty (ordinary least squares).
- ``Smoothing.REGULARIZATION``: ``P = I`` (Tikhonov / ridge).
- ``Smoothing.PSPLINE``: ``P = D^T D`` with ``D`` the second-order finite
  difference operator on the control point grid (Eilers & Marx).
"""
from enum import Enum
import logging

import numpy as np
from scipy import sparse

from .exceptions import InvalidConfigError
from .solvers import default_solver

logger = logging.getLogger(__name__)


class Smoothing(Enum):
    """Penalty added to the least-squares objective."""
    NONE = 'none'
    REGULARIZATION = 'regularization'  # alpha * |c|^2
    PSPLINE = 'pspline'                # alpha * |D c|^2


def _second_difference(n):
    # rows c[i] - 2 c[i+1] + c[i+2]
    return sparse.diags([1.0, -2.0, 1.0], [0, 1, 2], shape=(n - 2, n))


def second_order_difference_matrix(num_basis_functions):
    """
    Second-order finite difference operator on a grid of control points.

    Parameters
    ----------
    num_basis_functions : sequence of int
        Grid shape, i.e. number of basis functions per variable.

    Returns
    -------
    scipy.sparse.csr_array
        Stacked difference operators along every axis, with
        ``sum_k (n_k - 2) * prod_{j != k} n_j`` rows and ``prod_k n_k``
        columns. Coefficients are ordered as in `TensorBasis`.
    """
    shape = [int(n) for n in np.atleast_1d(num_basis_functions)]
    if any(n < 3 for n in shape):
        raise InvalidConfigError(
            "second_order_difference_matrix: need at least three basis functions "
            f"per variable, got {tuple(shape)}"
        )
    blocks = []
    for k, n_k in enumerate(shape):
        before = int(np.prod(shape[:k]))
        after = int(np.prod(shape[k + 1:]))
        block = sparse.kron(sparse.kron(sparse.eye(before), _second_difference(n_k), format='csr'),
                            sparse.eye(after), format='csr')
        blocks.append(block)
    D = sparse.csr_array(sparse.vstack(blocks, format='csr'))
    D.eliminate_zeros()
    return D


def solve_coefficients(A, y, smoothing=Smoothing.NONE, alpha=0.0,
                       num_basis_functions=None, solver=None):
    """
    Solve for the control point coefficients.

    Parameters
    ----------
    A : scipy.sparse matrix
        Basis (design) matrix, shape ``(n_samples, n_coefficients)``.
    y : np.ndarray
        Sample outputs.
    smoothing : Smoothing
        Penalty added to the objective.
    alpha : float
        Penalty strength. Ignored for `Smoothing.NONE`.
    num_basis_functions : sequence of int, optional
        Control point grid shape, required for `Smoothing.PSPLINE`.
    solver : LinearSolver, optional
        Solver for the normal equations. Defaults to `default_solver`.

    Returns
    -------
    np.ndarray
        Coefficients, one per column of `A`.

    Raises
    ------
    SingularSystemError
        If the normal equations cannot be solved.
    """
    smoothing = Smoothing(smoothing)
    A = sparse.csr_array(A)
    y = np.asarray(y, dtype=float)
    n_coef = A.shape[1]

    LHS = A.T @ A
    RHS = A.T @ y

    if smoothing is Smoothing.REGULARIZATION:
        LHS = LHS + alpha * sparse.csr_array(sparse.eye(n_coef))
    elif smoothing is Smoothing.PSPLINE:
        if num_basis_functions is None:
            num_basis_functions = (n_coef,)
        if int(np.prod(num_basis_functions)) != n_coef:
            raise InvalidConfigError(
                f"solve_coefficients: grid {tuple(num_basis_functions)} does not "
                f"match {n_coef} coefficients"
            )
        D = second_order_difference_matrix(num_basis_functions)
        LHS = LHS + alpha * (D.T @ D)

    if solver is None:
        solver = default_solver(n_coef)
    logger.debug("solving %d normal equations (%s, alpha=%g) with %s",
                 n_coef, smoothing.value, alpha, type(solver).__name__)
    return solver.solve(sparse.csr_array(LHS), RHS)
