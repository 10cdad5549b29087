# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from mne_connmetrics import Scout, ShapeMismatchError, SignalBlock
from mne_connmetrics.orientation import (reduce_connectivity_orientations,
                                         reduce_orientations)
from mne_connmetrics.scouts import (aggregate_scouts, extract_scout_signals,
                                    is_scout_target)

SCOUTS = [Scout('left', [0, 1]), Scout('right', [2, 3, 4])]


def test_is_scout_target():
    """Test telling scouts apart from other row targets."""
    assert is_scout_target(SCOUTS)
    assert not is_scout_target([])
    assert not is_scout_target(None)
    assert not is_scout_target('MEG')
    assert not is_scout_target([0, 1])


def test_extract_scout_signals():
    """Test extracting one time series per scout."""
    rng = np.random.RandomState(0)
    data = rng.randn(6, 50)
    out, names = extract_scout_signals(data, SCOUTS, 'mean')
    assert names == ['left', 'right']
    assert_allclose(out[0], data[:2].mean(axis=0))
    assert_allclose(out[1], data[2:5].mean(axis=0))

    out, names = extract_scout_signals(data, SCOUTS, 'all')
    assert names == ['left.0', 'left.1', 'right.2', 'right.3', 'right.4']
    assert_array_equal(out, data[:5])

    for func in ('std', 'median'):
        out, _ = extract_scout_signals(data, SCOUTS[:1], func)
        expected = getattr(np, func)(data[:2], axis=0)
        assert_allclose(out[0], expected)

    # the signed value of largest magnitude
    data = np.array([[1., -3.], [2., 1.]])
    out, _ = extract_scout_signals(data, [Scout('s', [0, 1])], 'max')
    assert_array_equal(out, [[2., -3.]])


def test_extract_scout_pca():
    """Test the first principal component of a scout."""
    rng = np.random.RandomState(0)
    common = np.sin(np.linspace(0, 10 * np.pi, 200))
    data = np.array([common, 2 * common, 0.5 * common]) + \
        0.01 * rng.randn(3, 200)
    out, names = extract_scout_signals(data, [Scout('s', [0, 1, 2])], 'pca')
    assert out.shape == (1, 200)
    assert names == ['s']
    # same polarity as the average signal
    assert np.corrcoef(out[0], common)[0, 1] > 0.99


def test_extract_scout_orientations():
    """Test scouts of unconstrained sources."""
    rng = np.random.RandomState(0)
    data = rng.randn(4 * 3, 20)
    out, names = extract_scout_signals(data, [Scout('s', [1, 3])], 'mean',
                                       n_components=3)
    assert names == ['s.1', 's.2', 's.3']
    rows = data.reshape(4, 3, 20)[[1, 3]]
    assert_allclose(out, rows.mean(axis=0))

    with pytest.raises(ShapeMismatchError, match='outside of the 4'):
        extract_scout_signals(data, [Scout('s', [4])], 'mean',
                              n_components=3)
    with pytest.raises(ValueError, match='Invalid value'):
        extract_scout_signals(data, SCOUTS, 'sum')


def test_aggregate_scouts():
    """Test aggregating a connectivity over the rows of scouts."""
    rng = np.random.RandomState(0)
    conn = rng.rand(5, 5, 1, 2)
    out, names_a, names_b = aggregate_scouts(conn, 'mean', SCOUTS, None)
    assert out.shape == (2, 5, 1, 2)
    assert names_a == ['left', 'right']
    assert names_b is None
    assert_allclose(out[1], conn[2:5].mean(axis=0))

    out, names_a, names_b = aggregate_scouts(conn, 'max', SCOUTS, SCOUTS)
    assert out.shape == (2, 2, 1, 2)
    assert names_b == ['left', 'right']
    assert_allclose(out[0, 1], conn[:2, 2:5].max(axis=(0, 1)))

    with pytest.raises(ShapeMismatchError, match='group 5 rows'):
        aggregate_scouts(conn[:4], 'mean', SCOUTS, None)
    with pytest.raises(ValueError, match='Invalid value'):
        aggregate_scouts(conn, 'pca', SCOUTS, None)


def test_reduce_orientations():
    """Test collapsing the orientations of unconstrained sources."""
    data = np.array([[0.1], [-0.5], [0.3], [0.2], [0.4], [-0.1]])
    names = ['a.1', 'a.2', 'a.3', 'b.1', 'b.2', 'b.3']
    out, new_names = reduce_orientations(data, 3, 'absmax', names)
    assert_array_equal(out, [[-0.5], [0.4]])
    assert new_names == ['a', 'b']
    out, _ = reduce_orientations(data, 3, 'max')
    assert_array_equal(out, [[0.3], [0.4]])
    with pytest.raises(ShapeMismatchError, match='cannot be grouped'):
        reduce_orientations(data[:5], 3, 'max')


def test_reduce_connectivity_orientations():
    """Test collapsing orientations on both axes of a connectivity."""
    rng = np.random.RandomState(0)
    times = np.arange(10) / 100.
    names = ['a.1', 'a.2', 'a.3', 'b.1', 'b.2', 'b.3']
    free = SignalBlock(rng.randn(6, 10), times, data_type='results',
                       n_components=3, row_names=names)
    fixed = SignalBlock(rng.randn(2, 10), times, row_names=['x', 'y'])

    conn = rng.rand(6, 2, 1, 1)
    out, names_a, names_b = reduce_connectivity_orientations(conn, free,
                                                             fixed)
    assert out.shape == (2, 2, 1, 1)
    assert names_a == ['a', 'b']
    assert names_b == ['x', 'y']
    assert_allclose(out[0], conn[:3].max(axis=0))

    conn = rng.rand(6, 6, 1, 1) - 0.5
    out, names_a, names_b = reduce_connectivity_orientations(conn, free,
                                                             free)
    assert out.shape == (2, 2, 1, 1)
    assert names_b == ['a', 'b']
    block = conn[3:, :3, 0, 0]
    idx = np.unravel_index(np.abs(block).argmax(), block.shape)
    assert out[1, 0, 0, 0] == block[idx]

    # constrained sources are left untouched
    out, names_a, _ = reduce_connectivity_orientations(conn[:2, :2], fixed,
                                                       fixed)
    assert out.shape == (2, 2, 1, 1)
    assert names_a == ['x', 'y']
