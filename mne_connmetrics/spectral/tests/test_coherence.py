# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import numpy as np
import pytest
from numpy.testing import assert_allclose

from mne.utils import catch_logging
from mne_connmetrics import DegenerateEstimateError
from mne_connmetrics.spectral import (coherence_window_params,
                                      cross_spectral_coherence)


def _noisy_copies(n_times=1000, seed=0):
    rng = np.random.RandomState(seed)
    data = rng.randn(3, n_times)
    # the second row follows the first with a delay of 2 samples
    data[1] = np.roll(data[0], 2) + 0.5 * data[1]
    return data


def test_coherence_window_params():
    """Test the window and FFT lengths."""
    assert coherence_window_params(100., 1000, max_freq_res=1.) == (128, 128)
    assert coherence_window_params(256., 1000, max_freq_res=2.) == (128, 128)
    # explicit window: zero-padded FFT
    assert coherence_window_params(100., 1000, win_len=0.5) == (50, 128)
    with pytest.warns(RuntimeWarning, match='frequency resolution'):
        params = coherence_window_params(100., 100, max_freq_res=0.5)
    assert params == (100, 100)
    with pytest.raises(DegenerateEstimateError, match='two samples'):
        coherence_window_params(100., 1000, win_len=0.01)


def test_cross_spectral_coherence():
    """Test the coherence of delayed signals."""
    data = _noisy_copies()
    with catch_logging() as log:
        coh, freqs, n_windows = cross_spectral_coherence(
            [data], None, 100., 128, 128, verbose=True)
    assert 'Using 14 windows of 128 samples each' in log.getvalue()
    assert n_windows == 14
    assert coh.shape == (3, 3, 64)
    assert freqs[0] > 0
    assert_allclose(freqs[-1], 50.)
    assert_allclose(coh[np.arange(3), np.arange(3)], 1.)
    assert_allclose(coh, coh.transpose(1, 0, 2))
    assert ((coh >= 0) & (coh <= 1 + 1e-12)).all()
    assert coh[0, 1].mean() > 0.5
    assert coh[0, 2].mean() < 0.2

    # the imaginary measures pick up the delay
    icoh, _, _ = cross_spectral_coherence([data], None, 100., 128, 128,
                                          measure='icohere')
    icoh2019, _, _ = cross_spectral_coherence([data], None, 100., 128, 128,
                                              measure='icohere2019')
    lcoh, _, _ = cross_spectral_coherence([data], None, 100., 128, 128,
                                          measure='lcohere2019')
    assert_allclose(icoh ** 2, icoh2019)
    assert_allclose(np.diag(icoh[..., 0]), 0., atol=1e-12)
    assert (icoh2019 <= coh + 1e-12).all()
    off_diag = ~np.eye(3, dtype=bool)
    assert (lcoh[off_diag] >= icoh2019[off_diag] - 1e-12).all()
    assert icoh[0, 1].max() > 0.3

    with pytest.raises(ValueError, match='Invalid value'):
        cross_spectral_coherence([data], None, 100., 128, 128,
                                 measure='coh')


def test_cross_spectral_coherence_trials():
    """Test the coherence accumulated over trials."""
    data = _noisy_copies(n_times=1500)
    trials = np.split(data, 3, axis=1)
    coh, freqs, n_windows = cross_spectral_coherence(
        (trial for trial in trials), None, 100., 128, 128, max_freq=20.)
    # 6 windows per trial
    assert n_windows == 18
    assert freqs.max() <= 20.
    assert coh.shape == (3, 3, len(freqs))

    # sources and targets
    coh_ab, _, _ = cross_spectral_coherence(
        [trial[:1] for trial in trials], [trial[1:] for trial in trials],
        100., 128, 128, max_freq=20.)
    assert coh_ab.shape == (1, 2, len(freqs))
    assert_allclose(coh_ab, coh[:1, 1:])

    with pytest.raises(DegenerateEstimateError, match='same number of time'):
        cross_spectral_coherence([data], [data[:, :500]], 100., 128, 128)
    with pytest.raises(DegenerateEstimateError, match='No trial'):
        cross_spectral_coherence([], None, 100., 128, 128)


def test_cross_spectral_coherence_kernel():
    """Test applying an imaging kernel to the spectra."""
    data = _noisy_copies()
    kernel = np.random.RandomState(1).randn(4, 3)
    coh, _, _ = cross_spectral_coherence([data], None, 100., 128, 128,
                                         kernel_a=kernel)
    expected, _, _ = cross_spectral_coherence([kernel @ data], None, 100.,
                                              128, 128)
    assert coh.shape == (4, 4, 64)
    assert_allclose(coh, expected, rtol=1e-7, atol=1e-10)

    other = np.random.RandomState(2).randn(2, 3)
    coh, _, _ = cross_spectral_coherence([data], [data], 100., 128, 128,
                                         kernel_a=kernel, kernel_b=other)
    expected, _, _ = cross_spectral_coherence([kernel @ data],
                                              [other @ data], 100., 128, 128)
    assert coh.shape == (4, 2, 64)
    assert_allclose(coh, expected, rtol=1e-7, atol=1e-10)


def test_cross_spectral_coherence_errors():
    """Test the signals that cannot be analysed."""
    data = _noisy_copies(n_times=100)
    with pytest.raises(DegenerateEstimateError, match='shorter than one'):
        cross_spectral_coherence([data], None, 100., 128, 128)
    data = _noisy_copies()
    with pytest.raises(DegenerateEstimateError, match='Nothing to save'):
        cross_spectral_coherence([data], None, 100., 128, 128, max_freq=0.5)
