import numpy as np
import pytest

from core import InvalidPermutationError, Permutation, VALID_PERMUTATION_CODES


DIMS = (2, 3, 5)  # width, height, depth: all distinct so swapped axes show up


def _coordinate_grid(perm: Permutation, dims=DIMS):
    l1, l2, l3 = perm.lengths(dims)
    d, y, x = np.meshgrid(np.arange(l3), np.arange(l2), np.arange(l1), indexing="ij")
    return x, y, d


def test_valid_codes():
    assert VALID_PERMUTATION_CODES == (123, 132, 213, 231, 312, 321)


@pytest.mark.parametrize(
    "code, expected",
    [
        (123, (2, 3, 5)),
        (132, (2, 5, 3)),
        (213, (3, 2, 5)),
        (231, (3, 5, 2)),
        (312, (5, 2, 3)),
        (321, (5, 3, 2)),
    ],
)
def test_lengths_follow_code_digits(code, expected):
    lengths = Permutation.from_code(code).lengths(DIMS)
    assert lengths == expected
    assert sorted(lengths) == sorted(DIMS)
    assert np.prod(lengths) == np.prod(DIMS)


@pytest.mark.parametrize("perm", list(Permutation))
def test_flat_index_is_bijection(perm):
    x, y, d = _coordinate_grid(perm)
    indices = perm.flat_index(x, y, d, DIMS).ravel()
    total = DIMS[0] * DIMS[1] * DIMS[2]
    assert np.array_equal(np.sort(indices), np.arange(total))


@pytest.mark.parametrize("perm", list(Permutation))
def test_gather_matches_flat_index(perm):
    width, height, depth = DIMS
    volume = np.arange(width * height * depth).reshape(depth, height, width)
    view = perm.gather(volume)

    l1, l2, l3 = perm.lengths(DIMS)
    assert view.shape == (l3, l2, l1)

    x, y, d = _coordinate_grid(perm)
    assert np.array_equal(view, perm.flat_index(x, y, d, DIMS))


def test_identity_slices_follow_depth():
    width, height, depth = DIMS
    volume = np.arange(width * height * depth).reshape(depth, height, width)
    view = Permutation.XYZ.gather(volume)
    assert np.array_equal(view[3], volume[3])


def test_231_and_312_are_mutual_inverses():
    assert Permutation.YZX.inverse is Permutation.ZXY
    assert Permutation.ZXY.inverse is Permutation.YZX

    width, height, depth = DIMS
    volume = np.arange(width * height * depth).reshape(depth, height, width)
    round_trip = Permutation.ZXY.gather(Permutation.YZX.gather(volume))
    assert np.array_equal(round_trip, volume)


@pytest.mark.parametrize("perm", list(Permutation))
def test_inverse_gather_restores_volume(perm):
    width, height, depth = DIMS
    volume = np.arange(width * height * depth).reshape(depth, height, width)
    assert np.array_equal(perm.inverse.gather(perm.gather(volume)), volume)


@pytest.mark.parametrize("code", [123, 132, 213, 321])
def test_self_inverse_codes(code):
    perm = Permutation.from_code(code)
    assert perm.inverse is perm


def test_from_code_accepts_strings_and_members():
    assert Permutation.from_code("312") is Permutation.ZXY
    assert Permutation.from_code(" 231 ") is Permutation.YZX
    assert Permutation.from_code(Permutation.ZYX) is Permutation.ZYX


@pytest.mark.parametrize("code", [0, 111, 124, 1234, "abc", "", None, True])
def test_from_code_rejects_invalid(code):
    with pytest.raises(InvalidPermutationError):
        Permutation.from_code(code)


def test_invalid_permutation_is_configuration_error():
    from core import ConfigurationError

    with pytest.raises(ConfigurationError):
        Permutation.from_code(999)


def test_gather_rejects_non_3d():
    with pytest.raises(ValueError):
        Permutation.XYZ.gather(np.zeros((2, 2)))
