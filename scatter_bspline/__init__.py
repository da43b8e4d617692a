from .base import BasisEvaluator, LinearSolver
from .basis import TensorBasis, assemble_basis_matrix
from .builder import (BSplineBuilder,
                      BuildOptions,
                      DEFAULT_DEGREE,
                      MAX_DEGREE,
                      MIN_SAMPLES_PER_CELL)
from .coefficients import (Smoothing,
                           second_order_difference_matrix,
                           solve_coefficients)
from .estimator import BSplineRegressor
from .exceptions import (BSplineError,
                         InsufficientDataError,
                         InvalidConfigError,
                         SampleOutOfDomainError,
                         SingularSystemError)
from .knots import (DEFAULT_MAX_SEGMENTS,
                    KnotSpacing,
                    check_knot_vector,
                    compute_knot_vector,
                    compute_knot_vectors,
                    extract_unique_sorted)
from .solvers import DENSE_SOLVE_LIMIT, DenseSolver, SparseLUSolver, default_solver
from .spline import TensorBSpline
from .table import SampleTable
