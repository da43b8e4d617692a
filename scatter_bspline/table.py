from dataclasses import dataclass
import numpy as np


@dataclass
class SampleTable:
    """
    Table of scattered samples ``(x, y)``.

    Parameters
    ----------
    x : np.ndarray
        Input points, shape ``(n_samples, n_variables)``. A 1-D array is
        treated as a single variable.
    y : np.ndarray
        Scalar outputs, shape ``(n_samples,)``.
    """
    x: np.ndarray
    y: np.ndarray

    def __post_init__(self):
        x = np.array(self.x, dtype=float)
        y = np.array(self.y, dtype=float)
        if x.ndim == 1:
            x = x[:, None]
        if x.ndim != 2:
            raise ValueError(f"SampleTable: x must be 1d or 2d, got ndim={x.ndim}")
        if y.ndim != 1:
            raise ValueError(f"SampleTable: y must be 1d, got ndim={y.ndim}")
        if x.shape[0] != y.shape[0]:
            raise ValueError(
                f"SampleTable: x has {x.shape[0]} rows but y has {y.shape[0]} values"
            )
        if x.shape[0] == 0 or x.shape[1] == 0:
            raise ValueError("SampleTable: no samples")
        if not (np.isfinite(x).all() and np.isfinite(y).all()):
            raise ValueError("SampleTable: samples contain non-finite values")
        x.flags.writeable = False
        y.flags.writeable = False
        self.x = x
        self.y = y

    @property
    def num_variables(self):
        return self.x.shape[1]

    @property
    def num_samples(self):
        return self.x.shape[0]

    def column(self, i):
        """Coordinates of all samples along variable `i`."""
        return self.x[:, i]
