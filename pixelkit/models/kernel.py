from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Sequence
import cv2
import numpy as np

from ..errors import InvalidParameterError


def _as_weights(values, ndim: int, what: str) -> np.ndarray:
    try:
        arr = np.array(values, dtype=np.float64)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"{what} must be numeric") from None
    if arr.ndim != ndim:
        raise InvalidParameterError(f"{what} must be {ndim}-dimensional, got shape {arr.shape}")
    if arr.size == 0:
        raise InvalidParameterError(f"{what} must not be empty")
    if not np.all(np.isfinite(arr)):
        raise InvalidParameterError(f"{what} must contain only finite weights")
    return arr


@dataclass(frozen=True, eq=False)
class Kernel:
    """
    Immutable odd square weight matrix with an optional normalisation divisor.

    • ``divisor`` None  → divide by the sum of weights (1 when that sum is 0)
    • ``separable``     → (row, column) 1D factors, weights == outer(column, row)
    """
    weights: np.ndarray
    divisor: Optional[float] = None
    separable: Optional[tuple[np.ndarray, np.ndarray]] = field(default=None, repr=False)

    def __post_init__(self):
        weights = _as_weights(self.weights, 2, "Kernel weights")
        rows, cols = weights.shape
        if rows != cols:
            raise InvalidParameterError(f"Kernel must be square, got {rows}x{cols}")
        if rows % 2 == 0:
            raise InvalidParameterError(f"Kernel size must be odd, got {rows}x{cols}")
        if self.divisor is not None:
            divisor = float(self.divisor)
            if divisor == 0.0 or not np.isfinite(divisor):
                raise InvalidParameterError(f"Kernel divisor must be finite and non-zero, got {self.divisor}")
            object.__setattr__(self, "divisor", divisor)
        weights.setflags(write=False)
        object.__setattr__(self, "weights", weights)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]], divisor: Optional[float] = None) -> Kernel:
        return cls(np.array(rows, dtype=np.float64), divisor)

    @classmethod
    def from_separable(
        cls,
        row: Sequence[float],
        column: Optional[Sequence[float]] = None,
        divisor: Optional[float] = None,
    ) -> Kernel:
        """Build a kernel from 1D factors; ``column`` defaults to ``row``."""
        row_arr = _as_weights(row, 1, "Separable row")
        col_arr = row_arr if column is None else _as_weights(column, 1, "Separable column")
        if row_arr.size != col_arr.size:
            raise InvalidParameterError(
                f"Separable factors must have equal length, got {row_arr.size} and {col_arr.size}"
            )
        row_arr.setflags(write=False)
        col_arr.setflags(write=False)
        return cls(np.outer(col_arr, row_arr), divisor, (row_arr, col_arr))

    # ─── Properties ─────────────────────────────────────────────────
    @property
    def size(self) -> int:
        return int(self.weights.shape[0])

    @property
    def radius(self) -> int:
        return self.size // 2

    @property
    def is_separable(self) -> bool:
        return self.separable is not None

    @property
    def effective_divisor(self) -> float:
        if self.divisor is not None:
            return self.divisor
        total = float(self.weights.sum())
        # Zero-sum (high-pass) kernels: treat as already normalised.
        if abs(total) < 1e-12:
            return 1.0
        return total

    def transposed(self) -> Kernel:
        if self.separable is not None:
            row, col = self.separable
            return Kernel.from_separable(col, row, self.divisor)
        return Kernel(self.weights.T.copy(), self.divisor)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Kernel):
            return NotImplemented
        return self.effective_divisor == other.effective_divisor and np.array_equal(self.weights, other.weights)


# ─── Catalogue ───────────────────────────────────────────────────────────

def gaussian(radius: int, sigma: Optional[float] = None) -> Kernel:
    """
    Separable Gaussian of size 2*radius+1.
    sigma defaults to OpenCV's rule for the given size.
    """
    if isinstance(radius, bool) or int(radius) != radius or radius < 1:
        raise InvalidParameterError(f"Gaussian radius must be a positive integer, got {radius}")
    if sigma is not None and sigma <= 0:
        raise InvalidParameterError(f"Gaussian sigma must be > 0, got {sigma}")
    size = 2 * int(radius) + 1
    factor = cv2.getGaussianKernel(size, -1 if sigma is None else float(sigma), cv2.CV_64F).ravel()
    return Kernel.from_separable(factor, factor)


BOX_BLUR = Kernel.from_separable([1.0, 1.0, 1.0])
IDENTITY = Kernel.from_rows([[0, 0, 0], [0, 1, 0], [0, 0, 0]])
SHARPEN = Kernel.from_rows([[0, -1, 0], [-1, 5, -1], [0, -1, 0]])
EDGE_DETECTION = Kernel.from_rows([[-1, -1, -1], [-1, 8, -1], [-1, -1, -1]])
EDGE_ONE = Kernel.from_rows([[0, -2.2, -0.6], [-0.4, 2.8, -0.3], [-0.8, -1, 2.5]], divisor=1)
EMBOSS = Kernel.from_rows([[-2, -1, 0], [-1, 1, 1], [0, 1, 2]])
LAPLACE = Kernel.from_rows([[0, -1, 0], [-1, 4, -1], [0, -1, 0]], divisor=1)
SOBEL_HORIZONTAL = Kernel.from_separable([-1, 0, 1], [1, 2, 1], divisor=1)
SOBEL_VERTICAL = Kernel.from_separable([1, 2, 1], [-1, 0, 1], divisor=1)
PREWITT_HORIZONTAL = Kernel.from_rows([[5, -3, -3], [5, 0, -3], [5, -3, -3]], divisor=1)
HORIZONTAL_LINES = Kernel.from_rows([[-1, -1, -1], [2, 2, 2], [-1, -1, -1]], divisor=1)
VERTICAL_LINES = Kernel.from_rows([[-1, 2, -1], [-1, 2, -1], [-1, 2, -1]], divisor=1)
LINES_45_DEG = Kernel.from_rows([[-1, -1, 2], [-1, 2, -1], [2, -1, -1]], divisor=1)
LINES_135_DEG = Kernel.from_rows([[2, -1, -1], [-1, 2, -1], [-1, -1, 2]], divisor=1)
