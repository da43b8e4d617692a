from dataclasses import dataclass
import logging
import numbers

import numpy as np

from .base import LinearSolver
from .basis import TensorBasis, assemble_basis_matrix
from .coefficients import Smoothing, solve_coefficients
from .exceptions import InvalidConfigError
from .knots import (DEFAULT_MAX_SEGMENTS,
                    KnotSpacing,
                    compute_knot_vectors,
                    extract_unique_sorted)
from .spline import TensorBSpline
from .table import SampleTable

logger = logging.getLogger(__name__)

MAX_DEGREE = 5
DEFAULT_DEGREE = 3
# Scattered samples per knot-span cell targeted by the default basis count
MIN_SAMPLES_PER_CELL = 8


@dataclass(frozen=True)
class BuildOptions:
    """
    Resolved configuration of a single `BSplineBuilder.build` call.
    """
    degrees: tuple
    num_basis_functions: tuple
    knot_spacing: KnotSpacing = KnotSpacing.SAMPLE
    smoothing: Smoothing = Smoothing.NONE
    alpha: float = 0.0
    max_segments: int = DEFAULT_MAX_SEGMENTS
    solver: LinearSolver = None


def _as_enum(enum_cls, value, name):
    if isinstance(value, str):
        value = value.lower()
    try:
        return enum_cls(value)
    except ValueError as e:
        choices = ', '.join(repr(m.value) for m in enum_cls)
        raise InvalidConfigError(
            f"BSplineBuilder.{name}: unknown value {value!r}, expected one of {choices}"
        ) from e


def _is_int(value):
    return isinstance(value, numbers.Integral) and not isinstance(value, (bool, np.bool_))


class BSplineBuilder:
    """
    Fit a tensor-product B-spline to scattered samples.

    Options are set through chained setters, each of which validates its
    argument immediately and raises `InvalidConfigError` without changing
    the builder. `build` then computes knot vectors, assembles the basis
    matrix and solves for the coefficients.

    Parameters
    ----------
    data : SampleTable or np.ndarray
        The samples, or the input points if `y` is given.
    y : np.ndarray, optional
        Sample outputs when `data` holds the input points.

    Examples
    --------
    >>> spline = (BSplineBuilder(x, y)
    ...           .degree(3)
    ...           .num_basis_functions(12)
    ...           .smoothing('pspline')
    ...           .alpha(0.1)
    ...           .build())
    """

    def __init__(self, data, y=None):
        if y is not None:
            data = SampleTable(data, y)
        elif not isinstance(data, SampleTable):
            raise TypeError("BSplineBuilder: expected a SampleTable or (x, y) arrays")
        self._data = data
        self._degrees = (DEFAULT_DEGREE,) * data.num_variables
        self._num_basis_functions = None
        self._knot_spacing = KnotSpacing.SAMPLE
        self._smoothing = Smoothing.NONE
        self._alpha = 0.0
        self._max_segments = DEFAULT_MAX_SEGMENTS
        self._solver = None

    @property
    def data(self):
        return self._data

    def _per_variable(self, name, value, lower, upper=None):
        n_vars = self._data.num_variables
        if np.ndim(value) == 0:
            values = [value] * n_vars
        else:
            values = list(value)
            if len(values) != n_vars:
                raise InvalidConfigError(
                    f"BSplineBuilder.{name}: expected {n_vars} values, got {len(values)}"
                )
        for v in values:
            if not _is_int(v):
                raise InvalidConfigError(f"BSplineBuilder.{name}: {v!r} is not an integer")
            if v < lower or (upper is not None and v > upper):
                bounds = f"[{lower}, {upper}]" if upper is not None else f">= {lower}"
                raise InvalidConfigError(f"BSplineBuilder.{name}: {v} is not {bounds}")
        return tuple(int(v) for v in values)

    # Build options

    def alpha(self, alpha):
        """Set the smoothing strength (non-negative)."""
        if not isinstance(alpha, numbers.Real) or isinstance(alpha, (bool, np.bool_)):
            raise InvalidConfigError(f"BSplineBuilder.alpha: {alpha!r} is not a real number")
        if not alpha >= 0:
            raise InvalidConfigError(f"BSplineBuilder.alpha: alpha must be non-negative, got {alpha}")
        self._alpha = float(alpha)
        return self

    def degree(self, degree):
        """Set the degree, either for all variables or as one value per variable."""
        self._degrees = self._per_variable('degree', degree, 0, MAX_DEGREE)
        return self

    def num_basis_functions(self, num_basis_functions):
        """Set the number of basis functions, for all variables or per variable."""
        self._num_basis_functions = self._per_variable('num_basis_functions',
                                                       num_basis_functions, 1)
        return self

    def knot_spacing(self, knot_spacing):
        self._knot_spacing = _as_enum(KnotSpacing, knot_spacing, 'knot_spacing')
        return self

    def smoothing(self, smoothing):
        self._smoothing = _as_enum(Smoothing, smoothing, 'smoothing')
        return self

    def max_segments(self, max_segments):
        """Set the largest number of knot spans for `KnotSpacing.EXPERIMENTAL`."""
        if not _is_int(max_segments) or max_segments < 1:
            raise InvalidConfigError(
                f"BSplineBuilder.max_segments: expected a positive integer, got {max_segments!r}"
            )
        self._max_segments = int(max_segments)
        return self

    def solver(self, solver):
        """Set the linear solver; None picks one by system size."""
        if solver is not None and not isinstance(solver, LinearSolver):
            raise InvalidConfigError(
                f"BSplineBuilder.solver: expected a LinearSolver, got {type(solver).__name__}"
            )
        self._solver = solver
        return self

    def _default_num_basis_functions(self):
        # Samples on a full grid are interpolated. Otherwise the knot spans
        # are chosen so that each tensor cell holds about
        # MIN_SAMPLES_PER_CELL samples.
        data = self._data
        n_unique = [len(extract_unique_sorted(data.column(i)))
                    for i in range(data.num_variables)]
        on_grid = (np.prod(n_unique, dtype=float) == data.num_samples and
                   len(np.unique(data.x, axis=0)) == data.num_samples)
        spans = int(np.floor((data.num_samples / MIN_SAMPLES_PER_CELL)
                             ** (1.0 / data.num_variables) + 1e-9))
        counts = []
        for degree, n_u in zip(self._degrees, n_unique):
            n = n_u if on_grid else min(n_u, degree + max(spans, 1))
            if self._knot_spacing is KnotSpacing.EXPERIMENTAL:
                n = min(n, degree + min(self._max_segments, n_u))
            counts.append(max(degree + 1, n))
        return tuple(counts)

    def build_options(self):
        """
        Resolve defaults and check the configuration as a whole.

        Returns
        -------
        BuildOptions
            The frozen configuration `build` will use.
        """
        if self._num_basis_functions is None:
            num_basis_functions = self._default_num_basis_functions()
        else:
            num_basis_functions = self._num_basis_functions

        for i, (degree, n_basis) in enumerate(zip(self._degrees, num_basis_functions)):
            if n_basis < degree + 1:
                raise InvalidConfigError(
                    f"BSplineBuilder: variable {i} has {n_basis} basis functions, "
                    f"degree {degree} needs at least {degree + 1}"
                )
        if self._smoothing is Smoothing.PSPLINE and min(num_basis_functions) < 3:
            raise InvalidConfigError(
                "BSplineBuilder: P-spline smoothing needs at least three basis "
                f"functions per variable, got {num_basis_functions}"
            )

        return BuildOptions(degrees=self._degrees,
                            num_basis_functions=num_basis_functions,
                            knot_spacing=self._knot_spacing,
                            smoothing=self._smoothing,
                            alpha=self._alpha,
                            max_segments=self._max_segments,
                            solver=self._solver)

    def build(self):
        """
        Fit the B-spline.

        Returns
        -------
        TensorBSpline
            The fitted spline.

        Raises
        ------
        InvalidConfigError
            If the options are inconsistent with each other.
        InsufficientDataError
            If a variable has too few distinct values for its basis.
        SampleOutOfDomainError
            If a sample falls outside the computed knot range.
        SingularSystemError
            If the least-squares system cannot be solved.
        """
        options = self.build_options()
        data = self._data

        knot_vectors = compute_knot_vectors(data,
                                            options.degrees,
                                            options.num_basis_functions,
                                            options.knot_spacing,
                                            options.max_segments)
        basis = TensorBasis(knot_vectors, options.degrees)
        A, y = assemble_basis_matrix(data, basis)
        coefficients = solve_coefficients(A, y,
                                          smoothing=options.smoothing,
                                          alpha=options.alpha,
                                          num_basis_functions=options.num_basis_functions,
                                          solver=options.solver)

        logger.info("built B-spline: %d variable(s), %d samples, %d coefficients, "
                    "smoothing=%s, alpha=%g", data.num_variables, data.num_samples,
                    basis.num_coefficients, options.smoothing.value, options.alpha)
        return TensorBSpline(knot_vectors, options.degrees, coefficients)
