"""
Knot vector construction.

Every knot vector built here is clamped: the smallest and largest sample
values are repeated ``degree + 1`` times so the spline spans the full data
range and interpolates its boundary control points. Interior knots are placed
by one of three strategies (see `KnotSpacing`).
"""
from enum import Enum
import logging

import numpy as np

from .exceptions import InsufficientDataError, InvalidConfigError

logger = logging.getLogger(__name__)

DEFAULT_MAX_SEGMENTS = 10


class KnotSpacing(Enum):
    """Placement strategy for interior knots."""
    SAMPLE = 'sample'             # moving average of the sample values
    EQUIDISTANT = 'equidistant'   # evenly spaced between min and max
    EXPERIMENTAL = 'experimental'  # boundaries of equal-population buckets


def extract_unique_sorted(values):
    """Distinct values of `values` in increasing order."""
    return np.unique(np.asarray(values, dtype=float).ravel())


def _clamp(unique, interior, degree):
    return np.concatenate((
        np.repeat(unique[0], degree + 1),
        interior,
        np.repeat(unique[-1], degree + 1),
    ))


def knot_vector_moving_average(unique, degree, num_basis_functions):
    """
    Interior knots from a moving average over the sample values.

    Windows of ``max(degree + 1, 2)`` consecutive distinct values are
    averaged, which pulls knots towards densely sampled regions. Each window
    holds at least two distinct values, so every average lies strictly
    inside the data range. The requested number of knots is picked evenly
    from the averages.
    """
    num_interior = num_basis_functions - degree - 1
    window = max(degree + 1, 2)
    if len(unique) < window:
        candidates = np.empty(0)
    else:
        candidates = np.lib.stride_tricks.sliding_window_view(unique, window).mean(axis=1)

    if num_interior > len(candidates):
        raise InsufficientDataError(
            f"knot_vector_moving_average: {len(unique)} distinct values give "
            f"{len(candidates)} interior knot positions, but {num_interior} are "
            f"needed for {num_basis_functions} basis functions of degree {degree}"
        )
    if num_interior == 0:
        interior = np.empty(0)
    else:
        idx = np.round(np.linspace(0, len(candidates) - 1, num_interior)).astype(int)
        interior = candidates[idx]
    return _clamp(unique, interior, degree)


def knot_vector_equidistant(unique, degree, num_basis_functions):
    """Interior knots evenly spaced between the smallest and largest value."""
    num_interior = num_basis_functions - degree - 1
    interior = np.linspace(unique[0], unique[-1], num_interior + 2)[1:-1]
    return _clamp(unique, interior, degree)


def knot_vector_buckets(unique, degree, num_basis_functions,
                        max_segments=DEFAULT_MAX_SEGMENTS):
    """
    Interior knots on the boundaries of equal-population buckets.

    The distinct values are split into ``num_basis_functions - degree``
    buckets whose sizes differ by at most one, and a knot is placed halfway
    between each pair of neighbouring buckets.
    """
    num_interior = num_basis_functions - degree - 1
    num_segments = num_interior + 1
    if num_segments > max_segments:
        raise InsufficientDataError(
            f"knot_vector_buckets: {num_basis_functions} basis functions of degree "
            f"{degree} need {num_segments} segments, more than max_segments={max_segments}"
        )
    if num_segments > len(unique):
        raise InsufficientDataError(
            f"knot_vector_buckets: cannot split {len(unique)} distinct values "
            f"into {num_segments} buckets"
        )
    sizes = [len(bucket) for bucket in np.array_split(unique, num_segments)]
    edges = np.cumsum(sizes)[:-1]
    interior = (unique[edges - 1] + unique[edges]) / 2
    return _clamp(unique, interior, degree)


def check_knot_vector(knots, degree, num_basis_functions):
    """
    Verify that `knots` is a valid clamped knot vector.

    Raises
    ------
    InsufficientDataError
        If the vector has the wrong length, decreases, is not clamped or
        spans an empty range.
    """
    expected = num_basis_functions + degree + 1
    if len(knots) != expected:
        raise InsufficientDataError(
            f"check_knot_vector: expected {expected} knots, got {len(knots)}"
        )
    if np.any(np.diff(knots) < 0):
        raise InsufficientDataError("check_knot_vector: knots must be non-decreasing")
    if not (np.all(knots[:degree + 1] == knots[0]) and
            np.all(knots[-(degree + 1):] == knots[-1])):
        raise InsufficientDataError(
            f"check_knot_vector: end knots must be repeated {degree + 1} times"
        )
    if not knots[0] < knots[-1]:
        raise InsufficientDataError("check_knot_vector: knots span an empty range")


def compute_knot_vector(values, degree, num_basis_functions,
                        knot_spacing=KnotSpacing.SAMPLE,
                        max_segments=DEFAULT_MAX_SEGMENTS):
    """
    Compute a clamped knot vector for one dimension.

    Parameters
    ----------
    values : np.ndarray
        Sample coordinates along this dimension. Duplicates are ignored.
    degree : int
        Polynomial degree of the basis.
    num_basis_functions : int
        Number of basis functions; the result has
        ``num_basis_functions + degree + 1`` knots.
    knot_spacing : KnotSpacing
        Interior knot placement strategy.
    max_segments : int
        Largest number of knot spans for `KnotSpacing.EXPERIMENTAL`.

    Returns
    -------
    np.ndarray
        The knot vector.
    """
    knot_spacing = KnotSpacing(knot_spacing)
    if num_basis_functions < degree + 1:
        raise InvalidConfigError(
            f"compute_knot_vector: need at least {degree + 1} basis functions "
            f"for degree {degree}, got {num_basis_functions}"
        )
    unique = extract_unique_sorted(values)
    if len(unique) < max(degree + 1, 2):
        raise InsufficientDataError(
            f"compute_knot_vector: {len(unique)} distinct values cannot support "
            f"a spline of degree {degree}"
        )

    if knot_spacing is KnotSpacing.SAMPLE:
        knots = knot_vector_moving_average(unique, degree, num_basis_functions)
    elif knot_spacing is KnotSpacing.EQUIDISTANT:
        knots = knot_vector_equidistant(unique, degree, num_basis_functions)
    else:
        knots = knot_vector_buckets(unique, degree, num_basis_functions, max_segments)

    check_knot_vector(knots, degree, num_basis_functions)
    return knots


def compute_knot_vectors(table, degrees, num_basis_functions,
                         knot_spacing=KnotSpacing.SAMPLE,
                         max_segments=DEFAULT_MAX_SEGMENTS):
    """Compute one knot vector per variable of a `SampleTable`."""
    knot_vectors = []
    for i, (degree, n_basis) in enumerate(zip(degrees, num_basis_functions)):
        knots = compute_knot_vector(table.column(i), degree, n_basis,
                                    knot_spacing, max_segments)
        logger.debug("variable %d: %d knots on [%g, %g] (%s)", i, len(knots),
                     knots[0], knots[-1], KnotSpacing(knot_spacing).value)
        knot_vectors.append(knots)
    return knot_vectors
