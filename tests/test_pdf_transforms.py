import numpy as np
import pytest

from utils.pdf_transforms import (
    IDENTITY_MATRIX,
    concatenate,
    get_scaling_factors,
    matrix_from_operands,
    matrix_to_list,
)


def test_matrix_layout_round_trips_operands():
    operands = [1, 2, 3, 4, 5, 6]
    matrix = matrix_from_operands(operands)
    assert matrix[0, 2] == 5 and matrix[1, 2] == 6
    assert matrix_to_list(matrix) == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]


def test_concatenate_applies_new_matrix_in_current_space():
    ctm = matrix_from_operands([2, 0, 0, 2, 0, 0])
    result = concatenate(ctm, [1, 0, 0, 1, 10, 5])
    # The translation is scaled by the outer matrix
    assert matrix_to_list(result) == [2.0, 0.0, 0.0, 2.0, 20.0, 10.0]


def test_concatenate_with_identity_is_noop():
    ctm = matrix_from_operands([3, 0, 0, 4, 7, 8])
    assert np.array_equal(concatenate(ctm, IDENTITY_MATRIX), ctm)


def test_scaling_factors_plain_scale_keeps_sign():
    assert get_scaling_factors(matrix_from_operands([72, 0, 0, -36, 0, 0])) == (72.0, -36.0)


def test_scaling_factors_rotation_uses_vector_length():
    scale_x, scale_y = get_scaling_factors(matrix_from_operands([0, 50, -50, 0, 0, 0]))
    assert scale_x == pytest.approx(50)
    assert scale_y == pytest.approx(50)
