# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from mne_connmetrics import (ShapeMismatchError, granger_causality,
                             spectral_granger_causality)
from mne_connmetrics.vector_ar.var import (_construct_var_eqns, _fit_var,
                                           _split_trials)

A = np.array([[0.5, 0.], [0.8, 0.2]])


def _simulate_var(n_times=5000, seed=0):
    """First order model where the first signal drives the second."""
    rng = np.random.RandomState(seed)
    data = np.zeros((2, n_times))
    for tt in range(1, n_times):
        data[:, tt] = A @ data[:, tt - 1] + rng.randn(2)
    return data


def test_split_trials():
    """Test splitting and standardizing concatenated trials."""
    data = np.random.RandomState(0).randn(2, 300) * 5 + 3
    trials = _split_trials(data, 3)
    assert trials.shape == (3, 2, 100)
    assert_allclose(trials.mean(axis=-1), 0., atol=1e-12)
    assert_allclose(trials.std(axis=-1), 1.)
    expected = (data[:, 100:200] - data[:, 100:200].mean(axis=-1,
                                                         keepdims=True))
    expected /= expected.std(axis=-1, keepdims=True)
    assert_allclose(trials[1], expected)

    # flat signals are kept at zero
    data[1] = 1.
    trials = _split_trials(data, 1)
    assert_array_equal(trials[0, 1], 0.)

    with pytest.raises(ShapeMismatchError, match='equal length'):
        _split_trials(data, 7)


def test_var_equations():
    """Test the lagged design of the VAR model."""
    data = np.arange(10.)[np.newaxis, np.newaxis]
    X, Y = _construct_var_eqns(data, 2)
    assert X.shape == (8, 2)
    assert_array_equal(Y[:, 0], np.arange(2., 10.))
    # one and two samples back
    assert_array_equal(X[:, 0], np.arange(1., 9.))
    assert_array_equal(X[:, 1], np.arange(0., 8.))

    with pytest.raises(ShapeMismatchError, match='too short'):
        _construct_var_eqns(data, 10)


def test_fit_var():
    """Test recovering the coefficients of a VAR model."""
    data = _simulate_var()
    coefs, sigma = _fit_var(data[np.newaxis], 1)
    assert coefs.shape == (1, 2, 2)
    assert_allclose(coefs[0], A, atol=0.05)
    assert_allclose(sigma, np.eye(2), atol=0.1)


def test_granger_causality():
    """Test the direction of the time-domain Granger causality."""
    data = _simulate_var(2000)
    gc = granger_causality(data, order=2)
    assert gc.shape == (2, 2)
    assert_array_equal(np.diag(gc), 0.)
    # gc[sink, source]
    assert gc[1, 0] > 0.2
    assert abs(gc[0, 1]) < 0.02

    gc_ab = granger_causality(data[1:], data[:1], order=2)
    assert gc_ab.shape == (1, 1)
    assert_allclose(gc_ab[0, 0], gc[1, 0])

    # two trials of the same process
    gc_trials = granger_causality(data, order=2, n_trials=2)
    assert gc_trials[1, 0] > 0.2

    with pytest.raises(ShapeMismatchError, match='equal length'):
        granger_causality(data, order=2, n_trials=3)


def test_spectral_granger_causality():
    """Test the frequency decomposition of the Granger causality."""
    data = _simulate_var(2000)
    gc, freqs = spectral_granger_causality(data, sfreq=100., order=2,
                                           freq_res=2.)
    assert_allclose(freqs, np.arange(0., 51., 2.))
    assert gc.shape == (2, 2, 26)
    assert np.isfinite(gc).all()
    assert_array_equal(gc[0, 0], 0.)
    assert gc[1, 0].mean() > 0.2
    assert gc[1, 0].mean() > 10 * abs(gc[0, 1].mean())

    gc_ab, _ = spectral_granger_causality(data[1:], data[:1], sfreq=100.,
                                          order=2, freq_res=2.)
    assert gc_ab.shape == (1, 1, 26)
    assert_allclose(gc_ab[0, 0], gc[1, 0])
