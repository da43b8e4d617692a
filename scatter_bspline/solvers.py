from dataclasses import dataclass
import logging

import numpy as np
from scipy import linalg, sparse
from scipy.sparse import linalg as splinalg

from .base import LinearSolver
from .exceptions import SingularSystemError

logger = logging.getLogger(__name__)

# Systems with fewer unknowns are solved densely
DENSE_SOLVE_LIMIT = 100


@dataclass
class DenseSolver(LinearSolver):
    """
    Dense symmetric (LDL^T) solve via `scipy.linalg.solve`.
    """

    def solve(self, lhs, rhs):
        if sparse.issparse(lhs):
            lhs = lhs.toarray()
        lhs = np.asarray(lhs, dtype=float)
        rhs = np.asarray(rhs, dtype=float)

        cond = np.linalg.cond(lhs)
        logger.debug("dense solve: n=%d, cond=%.3g", lhs.shape[0], cond)
        self._check_condition(cond)
        try:
            x = linalg.solve(lhs, rhs, assume_a='sym')
        except np.linalg.LinAlgError as e:
            raise SingularSystemError(f"DenseSolver: {e}") from e
        self._check_solution(lhs, rhs, x, np.linalg.norm(lhs, np.inf))
        return x


@dataclass
class SparseLUSolver(LinearSolver):
    """
    Sparse LU solve via SuperLU (`scipy.sparse.linalg.splu`).

    The 1-norm condition number is estimated from the factorization with
    `scipy.sparse.linalg.onenormest`.
    """

    def solve(self, lhs, rhs):
        lhs = sparse.csc_array(lhs, dtype=float)
        rhs = np.asarray(rhs, dtype=float)
        n = lhs.shape[0]

        try:
            lu = splinalg.splu(lhs)
        except RuntimeError as e:  # "Factor is exactly singular"
            raise SingularSystemError(f"SparseLUSolver: {e}") from e

        lhs_inv = splinalg.LinearOperator(
            (n, n),
            matvec=lu.solve,
            rmatvec=lambda v: lu.solve(v, trans='T'),
            matmat=lu.solve,
            rmatmat=lambda v: lu.solve(v, trans='T'),
            dtype=float,
        )
        cond = splinalg.norm(lhs, 1) * splinalg.onenormest(lhs_inv)
        logger.debug("sparse LU solve: n=%d, nnz=%d, cond~%.3g", n, lhs.nnz, cond)
        self._check_condition(cond)

        x = lu.solve(rhs)
        self._check_solution(lhs, rhs, x, splinalg.norm(lhs, np.inf))
        return x


def default_solver(num_unknowns):
    """Dense solver for small systems, sparse LU for large ones."""
    if num_unknowns < DENSE_SOLVE_LIMIT:
        return DenseSolver()
    return SparseLUSolver()
