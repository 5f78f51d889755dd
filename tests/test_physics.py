"""Field and SpinResolvedField tests."""

import numpy as np
import pytest

from hetpy import Field, SpinResolvedField, ShapeMismatchError

SHAPES = [(7,), (3, 5), (2, 3, 4)]


def _random_field(shape, seed):
    rng = np.random.default_rng(seed)
    return Field(rng.normal(size=shape))


@pytest.mark.parametrize("shape", SHAPES)
def test_addition_is_commutative_and_associative(shape):
    a, b, c = (_random_field(shape, s) for s in (1, 2, 3))

    assert (a + b).allclose(b + a)
    assert ((a + b) + c).allclose(a + (b + c))


@pytest.mark.parametrize("shape", SHAPES)
def test_scalar_multiplication_distributes(shape):
    a, b = _random_field(shape, 4), _random_field(shape, 5)

    assert (2.5 * (a + b)).allclose(2.5 * a + 2.5 * b)
    assert ((2.0 + 3.0) * a).allclose(2.0 * a + 3.0 * a)
    assert (a * 4.0).allclose(4.0 * a)
    assert (a / 4.0).allclose(0.25 * a)


@pytest.mark.parametrize("shape", SHAPES)
def test_subtraction_and_negation(shape):
    a, b = _random_field(shape, 6), _random_field(shape, 7)

    assert (a - a).infinity_norm() == 0.0
    assert (a - b).allclose(a + (-b))
    assert (-(-a)).allclose(a)


@pytest.mark.parametrize("shape", SHAPES)
def test_reductions(shape):
    data = np.arange(np.prod(shape), dtype=float).reshape(shape) - 3.0
    f = Field(data)

    assert f.min() == -3.0
    assert f.max() == data.max()
    assert f.infinity_norm() == max(3.0, data.max())
    assert abs(f).min() == 0.0
    assert len(f) == data.size


def test_kind_follows_dimension():
    assert Field.zeros((4,)).kind == 'vector'
    assert Field.zeros((4, 3)).kind == 'matrix'
    assert Field.zeros((4, 3, 2)).kind == 'volume'


def test_flat_index_is_c_ordered():
    f = Field(np.arange(6.0).reshape(2, 3))

    assert f[4] == 4.0
    f[5] = -1.0
    assert f.data[1, 2] == -1.0
    assert list(f) == [0.0, 1.0, 2.0, 3.0, 4.0, -1.0]


def test_numpy_scalars_multiply_fields():
    f = Field.full((3,), 2.0)

    assert isinstance(np.float64(3.0) * f, Field)
    assert (np.float64(3.0) * f).allclose(Field.full((3,), 6.0))


def test_four_dimensional_data_is_rejected():
    with pytest.raises(ShapeMismatchError):
        Field(np.zeros((2, 2, 2, 2)))


@pytest.mark.parametrize("other_shape", [(6,), (2, 4), (3, 2)])
def test_mismatched_shapes_raise(other_shape):
    a = Field.zeros((2, 3))
    b = Field.zeros(other_shape)

    with pytest.raises(ShapeMismatchError):
        a + b
    with pytest.raises(ShapeMismatchError):
        a - b


def test_shape_mismatch_is_a_value_error():
    with pytest.raises(ValueError):
        Field.zeros((3,)) + Field.zeros((4,))


def test_laplacian_follows_linear_combinations():
    a = Field.full((4,), 1.0)
    a.laplacian = Field.full((4,), 2.0)
    b = Field.full((4,), 3.0)
    b.laplacian = Field.full((4,), 5.0)

    c = a + 2.0 * b
    assert c.laplacian.allclose(Field.full((4,), 12.0))

    # only one operand carries a laplacian
    d = a + Field.zeros((4,))
    assert d.laplacian is None


def test_copy_is_independent():
    a = Field.zeros((3,))
    a.laplacian = Field.zeros((3,))
    b = a.copy()
    b.laplacian[0] = 1.0
    b[0] = 1.0

    assert a[0] == 0.0
    assert a.laplacian[0] == 0.0


def test_flat_index_write_drops_cached_laplacian():
    a = Field.full((4,), 1.0)
    a.laplacian = Field.full((4,), 2.0)

    a[2] += 5.0

    assert a[2] == 6.0
    assert a.laplacian is None


def test_data_and_vec_are_read_only():
    a = Field.zeros((2, 3))

    with pytest.raises(ValueError):
        a.data[0, 0] = 1.0
    with pytest.raises(ValueError):
        a.vec[1] = 1.0
    assert a.infinity_norm() == 0.0


def test_spin_resolved_shapes_must_agree():
    with pytest.raises(ShapeMismatchError):
        SpinResolvedField(Field.zeros((3,)), Field.zeros((4,)))


def test_spin_sums_are_recomputed_on_access():
    up = Field.full((2, 2), 1.0)
    down = Field.full((2, 2), 0.25)
    s = SpinResolvedField(up, down)

    assert s.spin_summed.allclose(Field.full((2, 2), 1.25))
    assert s.spin_difference.allclose(Field.full((2, 2), 0.75))

    s.spin_down[0] = 1.0
    assert s.spin_summed[0] == 2.0
    assert s.spin_difference[0] == 0.0


def test_spin_resolved_arithmetic():
    a = SpinResolvedField.from_total(Field.full((3,), 2.0))
    b = SpinResolvedField(Field.full((3,), 1.0), Field.full((3,), 3.0))

    assert a.spin_up.allclose(Field.full((3,), 1.0))
    assert (a + b).spin_summed.allclose(Field.full((3,), 6.0))
    assert (b - a).spin_difference.allclose(Field.full((3,), -2.0))
    assert (2.0 * b).spin_down.allclose(Field.full((3,), 6.0))

    c = b.copy()
    c.spin_up[0] = 10.0
    assert b.spin_up[0] == 1.0
