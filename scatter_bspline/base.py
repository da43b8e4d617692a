from dataclasses import dataclass
import numpy as np

from .exceptions import SingularSystemError


@dataclass
class BasisEvaluator:
    """
    Base class for tensor-product basis evaluators.

    Subclasses turn points into rows of the basis (design) matrix.
    """
    knot_vectors: list
    degrees: tuple

    def __post_init__(self):
        self._check_knot_vectors()

    def _check_knot_vectors(self):
        raise NotImplementedError

    def design_matrix(self, x):
        """
        Evaluate the basis at a set of points.

        Parameters
        ----------
        x : np.ndarray
            Points, shape ``(n_points, n_variables)``.

        Returns
        -------
        scipy.sparse.csr_array
            Basis values, shape ``(n_points, n_coefficients)``.
        """
        raise NotImplementedError

    def nonzero_basis(self, point):
        """
        Nonzero basis functions at a single point.

        Returns
        -------
        columns : np.ndarray
            Global column (control point) indices.
        values : np.ndarray
            Basis function values at `point`.
        """
        row = self.design_matrix(np.atleast_2d(np.asarray(point, dtype=float)))
        row = row.tocsr()
        return row.indices.copy(), row.data.copy()


@dataclass
class LinearSolver:
    """
    Base class for the symmetric solves behind the coefficient fit.

    Parameters
    ----------
    tol : float
        Largest accepted normwise backward error of the solution.
    rcond : float
        Smallest accepted reciprocal condition number of the system.
    """
    tol: float = 1e-10
    rcond: float = 1e-12

    def solve(self, lhs, rhs):
        """
        Solve ``lhs @ x = rhs``.

        Raises
        ------
        SingularSystemError
            If the system is singular or the solution is not accurate.
        """
        raise NotImplementedError

    def _check_condition(self, cond):
        if not np.isfinite(cond) or cond * self.rcond > 1.0:
            raise SingularSystemError(
                f"{type(self).__name__}: system is singular or ill-conditioned "
                f"(condition estimate {cond:.3g}, rcond {self.rcond:.3g})"
            )

    def _check_solution(self, lhs, rhs, x, lhs_norm):
        if not np.all(np.isfinite(x)):
            raise SingularSystemError(f"{type(self).__name__}: solution is not finite")
        residual = np.linalg.norm(lhs @ x - rhs, np.inf)
        scale = lhs_norm * np.linalg.norm(x, np.inf) + np.linalg.norm(rhs, np.inf)
        if residual > self.tol * scale:
            raise SingularSystemError(
                f"{type(self).__name__}: backward error {residual / scale:.3g} "
                f"exceeds tolerance {self.tol:.3g}"
            )
