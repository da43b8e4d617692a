from dataclasses import dataclass, field
import numpy as np
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted

from .builder import BSplineBuilder, DEFAULT_DEGREE
from .knots import DEFAULT_MAX_SEGMENTS
from .spline import TensorBSpline


@dataclass
class BSplineRegressor(BaseEstimator):
    """
    Scikit-learn style regressor backed by a tensor-product B-spline.

    The fields mirror the `BSplineBuilder` options; `fit` runs the builder
    and stores the result as `spline_`.
    """
    degree: int = DEFAULT_DEGREE
    num_basis_functions: int = None
    knot_spacing: str = 'sample'
    smoothing: str = 'none'
    alpha: float = 0.0
    max_segments: int = DEFAULT_MAX_SEGMENTS
    spline_: TensorBSpline = field(init=False, repr=False, compare=False)

    def fit(self, X, y):
        """
        Fit the spline.

        Parameters
        ----------
        X : np.ndarray
            Input points, shape ``(n_samples, n_features)``.
        y : np.ndarray
            Targets, shape ``(n_samples,)``.
        """
        builder = (BSplineBuilder(X, y)
                   .degree(self.degree)
                   .knot_spacing(self.knot_spacing)
                   .smoothing(self.smoothing)
                   .alpha(self.alpha)
                   .max_segments(self.max_segments))
        if self.num_basis_functions is not None:
            builder.num_basis_functions(self.num_basis_functions)
        self.spline_ = builder.build()
        self.n_features_in_ = builder.data.num_variables
        return self

    def predict(self, X):
        """
        Evaluate the fitted spline at `X`.
        """
        check_is_fitted(self)
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X[:, None]
        return self.spline_(X)
