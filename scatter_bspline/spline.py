from dataclasses import dataclass, field
import numpy as np

from .basis import TensorBasis


def _frozen(a):
    a = np.array(a, dtype=float)
    a.flags.writeable = False
    return a


@dataclass(frozen=True, eq=False)
class TensorBSpline:
    """
    Tensor-product B-spline.

    Parameters
    ----------
    knot_vectors : sequence of np.ndarray
        One knot vector per variable.
    degrees : sequence of int
        Polynomial degree per variable.
    coefficients : np.ndarray
        Control point coefficients, ordered as the columns of
        `TensorBasis.design_matrix`.
    """
    knot_vectors: tuple
    degrees: tuple
    coefficients: np.ndarray
    _basis: TensorBasis = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        knot_vectors = tuple(_frozen(t) for t in self.knot_vectors)
        degrees = tuple(int(k) for k in self.degrees)
        basis = TensorBasis(list(knot_vectors), degrees)
        coefficients = _frozen(self.coefficients).ravel()
        if coefficients.shape[0] != basis.num_coefficients:
            raise ValueError(
                f"TensorBSpline: {coefficients.shape[0]} coefficients for a basis "
                f"of {basis.num_coefficients} functions"
            )
        object.__setattr__(self, 'knot_vectors', knot_vectors)
        object.__setattr__(self, 'degrees', degrees)
        object.__setattr__(self, 'coefficients', coefficients)
        object.__setattr__(self, '_basis', basis)

    @property
    def num_variables(self):
        return len(self.degrees)

    @property
    def num_basis_functions(self):
        """Number of basis functions per variable."""
        return self._basis.num_basis_functions

    @property
    def num_coefficients(self):
        return self.coefficients.shape[0]

    @property
    def domain_lower_bound(self):
        return np.array([t[0] for t in self.knot_vectors])

    @property
    def domain_upper_bound(self):
        return np.array([t[-1] for t in self.knot_vectors])

    def basis_matrix(self, x):
        """Sparse basis matrix at the points `x`."""
        return self._basis.design_matrix(self._as_points(x))

    def evaluate(self, x):
        """
        Evaluate the spline.

        Parameters
        ----------
        x : np.ndarray
            A single point of length ``num_variables``, or points of shape
            ``(n_points, num_variables)``. For a univariate spline a 1-D
            array is a set of points.

        Returns
        -------
        float or np.ndarray
            Spline value(s).
        """
        x = np.asarray(x, dtype=float)
        single = x.ndim == 0 or (x.ndim == 1 and self.num_variables > 1)
        values = self.basis_matrix(x) @ self.coefficients
        return float(values[0]) if single else values

    __call__ = evaluate

    def _as_points(self, x):
        x = np.asarray(x, dtype=float)
        if x.ndim == 0:
            return x.reshape(1, 1)
        if x.ndim == 1:
            return x[:, None] if self.num_variables == 1 else x[None, :]
        return x
