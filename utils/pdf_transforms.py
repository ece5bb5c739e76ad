"""PDF transformation utilities for graphics operations."""

import math
from typing import List, Sequence, Tuple

import numpy as np

IDENTITY_MATRIX = [1.0, 0.0, 0.0, 1.0, 0.0, 0.0]


# --- Core Transformation Functions ---
def matrix_from_operands(values: Sequence) -> np.ndarray:
    """Build a 3x3 matrix from the six PDF matrix operands [a, b, c, d, e, f].

    Uses the column-vector layout::

        | a  c  e |
        | b  d  f |
        | 0  0  1 |
    """
    a, b, c, d, e, f = [float(v) for v in values]
    return np.array([[a, c, e], [b, d, f], [0, 0, 1]], dtype=float)


def matrix_to_list(matrix: np.ndarray) -> List[float]:
    """Flatten a 3x3 matrix back to the six-element PDF form."""
    return [
        float(matrix[0, 0]), float(matrix[1, 0]),
        float(matrix[0, 1]), float(matrix[1, 1]),
        float(matrix[0, 2]), float(matrix[1, 2]),
    ]


def concatenate(ctm: np.ndarray, values: Sequence) -> np.ndarray:
    """Return ``values x ctm``, the CTM after a ``cm`` with the given operands."""
    return np.dot(ctm, matrix_from_operands(values))


def get_scaling_factors(ctm: np.ndarray) -> Tuple[float, float]:
    """Horizontal and vertical scale factors of a CTM.

    An axis without a rotation/skew component reports its raw matrix entry,
    otherwise the length of the transformed unit vector.
    """
    a, b, c, d = ctm[0, 0], ctm[1, 0], ctm[0, 1], ctm[1, 1]

    scale_x = float(a)
    if b != 0:
        scale_x = math.sqrt(a * a + b * b)

    scale_y = float(d)
    if c != 0:
        scale_y = math.sqrt(c * c + d * d)

    return scale_x, scale_y

