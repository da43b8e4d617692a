from dataclasses import dataclass
import logging

import numpy as np
from scipy import sparse
from scipy.interpolate import BSpline

from .base import BasisEvaluator
from .exceptions import SampleOutOfDomainError

logger = logging.getLogger(__name__)


def _local_basis(x, t, k):
    """
    Nonzero univariate basis values at each point.

    Returns the ``(n, k + 1)`` basis values and, per point, the index of the
    first basis function they belong to.
    """
    N_mat = BSpline.design_matrix(x, t, k).tocsr()
    counts = np.diff(N_mat.indptr)
    if np.any(counts == 0):
        raise SampleOutOfDomainError("design_matrix: point with no supporting basis function")
    rows = np.repeat(np.arange(len(x)), counts)
    start = np.minimum.reduceat(N_mat.indices, N_mat.indptr[:-1])
    values = np.zeros((len(x), k + 1))
    values[rows, N_mat.indices - start[rows]] = N_mat.data
    return values, start


@dataclass
class TensorBasis(BasisEvaluator):
    """
    Tensor-product B-spline basis over clamped knot vectors.

    Columns are ordered over the control-point grid in C order: the last
    variable varies fastest.
    """

    def _check_knot_vectors(self):
        self.knot_vectors = [np.asarray(t, dtype=float) for t in self.knot_vectors]
        self.degrees = tuple(int(k) for k in self.degrees)
        if len(self.knot_vectors) != len(self.degrees):
            raise ValueError(
                f"TensorBasis: {len(self.knot_vectors)} knot vectors for "
                f"{len(self.degrees)} degrees"
            )
        for t, k in zip(self.knot_vectors, self.degrees):
            if t.ndim != 1:
                raise ValueError("TensorBasis: knot vectors must be 1d")
            if len(t) < 2 * (k + 1):
                raise ValueError(
                    f"TensorBasis: degree {k} needs at least {2 * (k + 1)} knots, got {len(t)}"
                )
            if np.any(np.diff(t) < 0):
                raise ValueError("TensorBasis: knot vectors must be non-decreasing")

    @property
    def num_basis_functions(self):
        return tuple(len(t) - k - 1 for t, k in zip(self.knot_vectors, self.degrees))

    @property
    def num_coefficients(self):
        return int(np.prod(self.num_basis_functions))

    def design_matrix(self, x):
        x = np.asarray(x, dtype=float)
        if x.ndim == 1 and len(self.degrees) == 1:
            x = x[:, None]
        if x.ndim != 2 or x.shape[1] != len(self.degrees):
            raise ValueError(
                f"design_matrix: expected points with {len(self.degrees)} coordinates, "
                f"got shape {x.shape}"
            )
        n = x.shape[0]

        # Knots are clamped, so [t[0], t[-1]] is the whole domain
        for i, t in enumerate(self.knot_vectors):
            outside = (x[:, i] < t[0]) | (x[:, i] > t[-1])
            if np.any(outside):
                raise SampleOutOfDomainError(
                    f"design_matrix: {outside.sum()} point(s) outside "
                    f"[{t[0]}, {t[-1]}] in variable {i}"
                )

        # Row-wise Kronecker product of the univariate bases
        values = np.ones((n, 1))
        columns = np.zeros((n, 1), dtype=np.intp)
        for i, (t, k, n_basis) in enumerate(zip(self.knot_vectors, self.degrees,
                                                self.num_basis_functions)):
            local, start = _local_basis(x[:, i], t, k)
            idx = start[:, None] + np.arange(k + 1)
            values = (values[:, :, None] * local[:, None, :]).reshape(n, -1)
            columns = (columns[:, :, None] * n_basis + idx[:, None, :]).reshape(n, -1)

        if not np.all(np.any(values != 0, axis=1)):
            raise SampleOutOfDomainError("design_matrix: point with all basis functions zero")

        nnz_row = values.shape[1]
        indptr = np.arange(0, n * nnz_row + 1, nnz_row)
        return sparse.csr_array((values.ravel(), columns.ravel(), indptr),
                                shape=(n, self.num_coefficients))


def assemble_basis_matrix(table, basis):
    """
    Build the design matrix and target vector for a `SampleTable`.

    Returns
    -------
    A : scipy.sparse.csr_array
        One row per sample, one column per control point.
    y : np.ndarray
        Sample outputs.
    """
    A = basis.design_matrix(table.x)
    logger.debug("design matrix %s with %d nonzeros", A.shape, A.nnz)
    return A, np.asarray(table.y, dtype=float)
