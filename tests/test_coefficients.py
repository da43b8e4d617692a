"""
Tests for the coefficient solves and the P-spline penalty matrix.

The three smoothing strategies differ only in the penalty added to the
normal equations, so on well-posed systems they are compared against direct
reference solves, and the dense and sparse solvers against each other.
"""
import numpy as np
import pytest
from scipy import sparse

from scatter_bspline import (DenseSolver,
                             InvalidConfigError,
                             SingularSystemError,
                             Smoothing,
                             SparseLUSolver,
                             TensorBasis,
                             compute_knot_vector,
                             default_solver,
                             second_order_difference_matrix,
                             solve_coefficients)


def _design(n_samples=120, num_basis_functions=(8,), seed=0):
    rng = np.random.default_rng(seed)
    d = len(num_basis_functions)
    x = rng.uniform(0, 1, (n_samples, d))
    y = np.sin(2 * np.pi * x).sum(axis=1) + rng.normal(0, 0.1, n_samples)
    knot_vectors = [compute_knot_vector(x[:, i], 3, n, 'equidistant')
                    for i, n in enumerate(num_basis_functions)]
    A = TensorBasis(knot_vectors, (3,) * d).design_matrix(x)
    return A, y


def test_second_difference_1d():
    D = second_order_difference_matrix([5]).toarray()
    expected = np.array([[1, -2, 1, 0, 0],
                         [0, 1, -2, 1, 0],
                         [0, 0, 1, -2, 1]])
    np.testing.assert_array_equal(D, expected)


@pytest.mark.parametrize("shape", [(3,), (4, 3), (5, 6), (3, 4, 5)])
def test_second_difference_shape(shape):
    D = second_order_difference_matrix(shape)
    n_rows = sum((shape[k] - 2) * int(np.prod(shape)) // shape[k] for k in range(len(shape)))
    assert D.shape == (n_rows, int(np.prod(shape)))
    # three entries [1, -2, 1] per row
    np.testing.assert_array_equal(np.diff(D.tocsr().indptr), 3)
    np.testing.assert_allclose(D.sum(axis=1), 0.0)


def test_second_difference_annihilates_multilinear():
    """
    Coefficient grids that are linear along every axis have no curvature.
    """
    shape = (4, 5, 6)
    i, j, k = np.meshgrid(*[np.arange(n) for n in shape], indexing='ij')
    c = 1.0 + 2.0 * i - 0.5 * j + 3.0 * k + i * j - 0.25 * j * k
    D = second_order_difference_matrix(shape)
    np.testing.assert_allclose(D @ c.ravel(), 0.0, atol=1e-12)

    c_curved = c + (j ** 2)
    assert np.linalg.norm(D @ c_curved.ravel()) > 1


def test_second_difference_axis_ordering():
    """
    The last axis varies fastest, matching the basis column ordering.
    """
    c = np.zeros((3, 4))
    c[:, 1] = 1.0
    D = second_order_difference_matrix((3, 4))
    r = D @ c.ravel()
    # first block: differences along axis 0 (constant columns) vanish
    np.testing.assert_allclose(r[:4], 0.0)
    np.testing.assert_allclose(r[4:], np.tile([-2.0, 1.0], 3))


def test_second_difference_too_small():
    with pytest.raises(InvalidConfigError):
        second_order_difference_matrix((2, 5))


def test_ordinary_least_squares_reference():
    A, y = _design()
    c = solve_coefficients(A, y, Smoothing.NONE)
    c_ref = np.linalg.lstsq(A.toarray(), y, rcond=None)[0]
    np.testing.assert_allclose(c, c_ref, rtol=1e-8, atol=1e-10)


def test_regularized_reference():
    A, y = _design()
    alpha = 0.3
    Ad = A.toarray()
    c = solve_coefficients(A, y, 'regularization', alpha)
    c_ref = np.linalg.solve(Ad.T @ Ad + alpha * np.eye(Ad.shape[1]), Ad.T @ y)
    np.testing.assert_allclose(c, c_ref, rtol=1e-8, atol=1e-10)

    c_zero = solve_coefficients(A, y, 'regularization', 0.0)
    np.testing.assert_allclose(c_zero, solve_coefficients(A, y, 'none'), rtol=1e-10)


def test_pspline_reference():
    A, y = _design(num_basis_functions=(6, 5))
    alpha = 2.0
    Ad = A.toarray()
    D = second_order_difference_matrix((6, 5)).toarray()
    c = solve_coefficients(A, y, Smoothing.PSPLINE, alpha, num_basis_functions=(6, 5))
    c_ref = np.linalg.solve(Ad.T @ Ad + alpha * D.T @ D, Ad.T @ y)
    np.testing.assert_allclose(c, c_ref, rtol=1e-8, atol=1e-10)


@pytest.mark.parametrize("smoothing", list(Smoothing))
def test_dense_and_sparse_agree(smoothing):
    A, y = _design(n_samples=400, num_basis_functions=(9, 8))
    kwargs = dict(smoothing=smoothing, alpha=0.05, num_basis_functions=(9, 8))
    c_dense = solve_coefficients(A, y, solver=DenseSolver(), **kwargs)
    c_sparse = solve_coefficients(A, y, solver=SparseLUSolver(), **kwargs)
    np.testing.assert_allclose(c_dense, c_sparse, rtol=1e-8, atol=1e-10)


def test_pspline_grid_mismatch():
    A, y = _design(num_basis_functions=(8,))
    with pytest.raises(InvalidConfigError):
        solve_coefficients(A, y, 'pspline', 1.0, num_basis_functions=(3, 3))
    # univariate grid is inferred
    solve_coefficients(A, y, 'pspline', 1.0)


@pytest.mark.parametrize("solver", [DenseSolver(), SparseLUSolver()])
def test_singular_matrix(solver):
    lhs = sparse.csr_array(np.array([[1.0, 1.0], [1.0, 1.0]]))
    with pytest.raises(SingularSystemError):
        solver.solve(lhs, np.array([1.0, 2.0]))


@pytest.mark.parametrize("solver", [DenseSolver(), SparseLUSolver()])
def test_rank_deficient_least_squares(solver):
    """
    More control points than samples cannot be fitted without smoothing.
    """
    x = np.linspace(0, 1, 5)[:, None]
    knots = compute_knot_vector(x[:, 0], 3, 8, 'equidistant')
    A = TensorBasis([knots], (3,)).design_matrix(x)
    y = x[:, 0] ** 2
    with pytest.raises(SingularSystemError):
        solve_coefficients(A, y, 'none', solver=solver)
    c = solve_coefficients(A, y, 'regularization', 1e-3, solver=solver)
    assert np.all(np.isfinite(c))


def test_well_conditioned_solve():
    rng = np.random.default_rng(5)
    M = rng.normal(size=(6, 6))
    lhs = M @ M.T + 6 * np.eye(6)
    rhs = rng.normal(size=6)
    expected = np.linalg.solve(lhs, rhs)
    np.testing.assert_allclose(DenseSolver().solve(lhs, rhs), expected, rtol=1e-10)
    np.testing.assert_allclose(SparseLUSolver().solve(sparse.csr_array(lhs), rhs),
                               expected, rtol=1e-10)


def test_default_solver():
    assert isinstance(default_solver(10), DenseSolver)
    assert isinstance(default_solver(99), DenseSolver)
    assert isinstance(default_solver(100), SparseLUSolver)
