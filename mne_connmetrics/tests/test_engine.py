# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from mne_connmetrics import (ConfigurationError, ConnectivityOptions,
                             SignalBlock, TrialList,
                             UnsupportedCombinationError, compute)
from mne_connmetrics.engine import _METHOD_MAP, get_estimator
from mne_connmetrics.options import METHODS

ALPHA = [('alpha', '8, 12', 'mean')]
BANDS = [('alpha', '8, 12', 'mean'), ('beta', '15, 29', 'mean')]


def _lagged_sines(lag=0.5, sfreq=100., n_times=1000):
    times = np.arange(n_times) / sfreq
    rng = np.random.RandomState(0)
    data = np.array([np.sin(2 * np.pi * 10. * times),
                     np.sin(2 * np.pi * 10. * times - lag)])
    data += 0.01 * rng.randn(*data.shape)
    return SignalBlock(data, times, row_names=['a', 'b'])


def _ar_pair(n_times=2000, seed=0):
    """Second row driven by the past of the first."""
    rng = np.random.RandomState(seed)
    x = np.zeros(n_times)
    y = np.zeros(n_times)
    for tt in range(1, n_times):
        x[tt] = 0.5 * x[tt - 1] + rng.randn()
        y[tt] = 0.2 * y[tt - 1] + 0.8 * x[tt - 1] + rng.randn()
    return SignalBlock(np.array([x, y]), np.arange(n_times) / 100.,
                       row_names=['x', 'y'])


def test_method_map():
    """Test that every method has an estimator."""
    assert set(_METHOD_MAP) == set(METHODS)
    for method in METHODS:
        est = get_estimator(ConnectivityOptions(method=method))
        assert est.name == method
        assert 'Calculating' in est.describe(2, 3)


def test_compute_corr(make_block):
    """Test the correlation of signal blocks."""
    block_a = make_block(n_rows=3)
    conn, comment, info = compute(block_a)
    assert conn.shape == (3, 3, 1, 1)
    assert comment == 'Corr: '
    assert info['freqs'] == [0.]
    assert_allclose(np.diag(conn[..., 0, 0]), 1.)
    assert_allclose(conn[..., 0, 0], np.corrcoef(block_a.data), atol=1e-12)

    block_b = make_block(n_rows=2, seed=1)
    conn, _, _ = compute(block_a, block_b, dict(method='corr'))
    assert conn.shape == (3, 2, 1, 1)
    conn_t, _, _ = compute(block_b, block_a, dict(method='corr'))
    assert_allclose(conn[..., 0, 0], conn_t[..., 0, 0].T)


def test_compute_cohere(make_block):
    """Test the coherence of signal blocks."""
    block = make_block(n_rows=2, n_times=1000)
    # the second row is a noisy copy of the first
    block.data[1] = block.data[0] + 0.1 * block.data[1]
    options = ConnectivityOptions(method='cohere', max_freq_res=1.)
    conn, comment, info = compute(block, options=options)
    freqs = np.array(info['freqs'])
    assert conn.shape == (2, 2, 1, len(freqs))
    assert freqs[0] > 0
    assert freqs[-1] == pytest.approx(50.)
    assert comment == 'mscohere(0.8Hz,14win): '
    assert info['n_windows'] == 14
    assert_allclose(conn[0, 0], 1.)
    assert (conn[0, 1] > 0.9).all()
    assert_allclose(conn[0, 1], conn[1, 0])

    options = options.replace(max_freq=20., coh_measure='icohere2019')
    conn, comment, info = compute(block, options=options)
    assert max(info['freqs']) <= 20.
    assert comment.startswith('icohere2019(')
    assert (conn[0, 1] < 0.1).all()

    with pytest.raises(ConfigurationError, match='frequency resolution'):
        compute(block, options=dict(method='cohere'))


def test_compute_cohere_trials(make_block):
    """Test the coherence over separate trials."""
    trials = [make_block(n_rows=2, seed=seed).data for seed in range(3)]
    template = SignalBlock(trials[0], np.arange(500) / 100.)
    options = ConnectivityOptions(method='cohere', max_freq_res=1.)
    conn, comment, info = compute(TrialList(template, trials),
                                  options=options, n_trials=3)
    assert conn.shape[:3] == (2, 2, 1)
    # 6 windows of 128 samples per trial
    assert info['n_windows'] == 18
    assert '18win' in comment

    with pytest.raises(UnsupportedCombinationError, match='separate trials'):
        compute(TrialList(template, trials), options=dict(method='corr'))


def test_compute_granger():
    """Test the direction of the Granger causality."""
    block = _ar_pair()
    options = ConnectivityOptions(method='granger', granger_order=2)
    conn, comment, _ = compute(block, options=options)
    assert conn.shape == (2, 2, 1, 1)
    assert comment == 'Granger: '
    conn = conn[..., 0, 0]
    assert_array_equal(np.diag(conn), 0.)
    # [from x to]
    assert conn[0, 1] > 0.2
    assert abs(conn[1, 0]) < 0.02

    # a single source row: the direction is in the comment
    row_x = block.copy(data=block.data[:1], row_names=['x'])
    row_y = block.copy(data=block.data[1:], row_names=['y'])
    conn_out, comment, _ = compute(row_x, row_y, options)
    assert comment == 'Granger(out): '
    assert conn_out.shape == (1, 1, 1, 1)
    assert_allclose(conn_out[0, 0, 0, 0], conn[0, 1], rtol=1e-6)
    conn_in, comment, _ = compute(row_x, row_y,
                                  options.replace(granger_dir='in'))
    assert comment == 'Granger(in): '
    assert_allclose(conn_in[0, 0, 0, 0], conn[1, 0], rtol=1e-6,
                    atol=1e-8)


def test_compute_spectral_granger():
    """Test the spectral Granger causality."""
    block = _ar_pair()
    options = ConnectivityOptions(method='spgranger', granger_order=2,
                                  max_freq_res=1., max_freq=30.)
    conn, comment, info = compute(block, options=options)
    freqs = np.array(info['freqs'])
    assert_allclose(freqs, np.arange(1., 31.))
    assert conn.shape == (2, 2, 1, 30)
    assert comment == 'SpGranger(1.0Hz): '
    assert conn[0, 1].mean() > conn[1, 0].mean()

    options = ConnectivityOptions(method='spgranger', granger_order=2,
                                  win_len=0.5)
    _, comment, info = compute(block, options=options)
    assert info['freqs'][0] == 2.
    assert comment == 'SpGranger(2.0Hz): '


@pytest.mark.parametrize('method, comment', [
    ('plv', 'PLV: '), ('ciplv', 'ciPLV: '), ('wpli', 'wPLI: ')])
def test_compute_phase(method, comment):
    """Test the phase-locking measures on lagged oscillations."""
    block = _lagged_sines()
    options = ConnectivityOptions(method=method, freqs=ALPHA)
    conn, this_comment, info = compute(block, options=options)
    assert this_comment == comment
    assert info['freqs'] == ['alpha']
    assert info['freq_bands'] == [['alpha', 8., 12., 'mean']]
    assert conn.shape == (2, 2, 1, 1)
    value = conn[0, 1, 0, 0]
    if method == 'plv':
        assert np.iscomplexobj(conn)
        assert np.abs(value) > 0.95
        assert np.angle(value) == pytest.approx(0.5, abs=0.05)
    else:
        assert value > 0.9
        assert conn[1, 0, 0, 0] < -0.9


@pytest.mark.parametrize('method', ['plvt', 'ciplvt', 'wplit'])
def test_compute_phase_time_resolved(method):
    """Test the time-resolved phase measures."""
    block = _lagged_sines(n_times=500)
    options = ConnectivityOptions(method=method, freqs=BANDS)
    conn, _, info = compute(block, options=options)
    assert conn.shape == (2, 2, 500, 2)
    assert_allclose(info['times'], block.times)
    assert info['freqs'] == ['alpha', 'beta']


def test_compute_phase_unconstrained(make_block):
    """Test that the phase measures reject unconstrained sources."""
    block = make_block(n_rows=6, data_type='results', n_components=3)
    with pytest.raises(UnsupportedCombinationError, match='unconstrained'):
        compute(block, options=dict(method='plv', freqs=ALPHA))
    # the correlation is fine
    conn, _, _ = compute(block)
    assert conn.shape == (6, 6, 1, 1)


def test_compute_non_finite_values():
    """Test that undefined values are set to zero."""
    block = _lagged_sines()
    # a flat row has no phase
    block.data[1] = 0.
    conn, _, _ = compute(block, options=dict(method='plv', freqs=ALPHA))
    assert np.isfinite(conn).all()
    assert_array_equal(conn[:, 1], 0.)
    assert np.abs(conn[0, 0, 0, 0]) == pytest.approx(1.)


def test_compute_aec(make_block):
    """Test the amplitude envelope correlation in bands."""
    block = make_block(n_rows=3)
    conn, comment, info = compute(block, options=dict(method='aec',
                                                      freqs=BANDS))
    assert conn.shape == (3, 3, 1, 2)
    assert comment == 'AEC: '
    assert_allclose(conn[0, 0], 1.)
    conn, _, info = compute(block, options=dict(method='aec', is_orth=True))
    assert conn.shape == (3, 3, 1, 1)
    assert info['freqs'] == ['broadband']
    assert info['freq_bands'] is None


def test_compute_pte(make_block):
    """Test the phase transfer entropy between two blocks."""
    block_a = make_block(n_rows=1, n_times=1000)
    block_b = make_block(n_rows=2, n_times=1000, seed=1)
    options = ConnectivityOptions(method='pte', freqs=ALPHA,
                                  is_normalized=True)
    conn, comment, _ = compute(block_a, block_b, options)
    assert conn.shape == (1, 2, 1, 1)
    assert comment == 'PTE [Normalized]: '
    assert ((conn >= 0) & (conn <= 1)).all()
    conn, comment, _ = compute(block_a, block_b,
                               options.replace(is_normalized=False))
    assert comment == 'PTE: '


@pytest.mark.parametrize('options', [
    dict(method='cohere', win_len=0.5),
    dict(method='cohere', max_freq_res=1.),
    dict(method='plv', freqs=ALPHA),
    dict(method='aec', freqs=BANDS),
    dict(method='aec', freqs=ALPHA, is_orth=True),
])
def test_compute_swap_sources_targets(make_block, options):
    """Test that swapping the sources and targets transposes the estimate."""
    block_a = make_block(n_rows=2, n_times=1000)
    block_b = make_block(n_rows=3, n_times=1000, seed=1)
    block_b.data[0] += block_a.data[0]
    conn, _, _ = compute(block_a, block_b, options)
    conn_t, _, _ = compute(block_b, block_a, options)
    assert conn.shape[:2] == (2, 3)
    assert_allclose(conn, conn_t.transpose(1, 0, 2, 3), atol=1e-10)


def test_compute_pte_flat():
    """Test the phase transfer entropy of flat signals."""
    block = _lagged_sines()
    block.data[:] = 0.
    conn, _, _ = compute(block, options=dict(method='pte', freqs=ALPHA))
    assert conn.shape == (2, 2, 1, 1)
    assert_array_equal(conn, 0.)


def test_compute_henv(make_block):
    """Test the windowed envelope connectivity."""
    block = make_block(n_rows=2, n_times=500, tmin=-1.)
    options = ConnectivityOptions(method='henv', freqs=BANDS, win_length=1.,
                                  win_overlap=0.5, henv_measure='penv')
    conn, comment, info = compute(block, options=options)
    assert conn.shape == (2, 2, 9, 2)
    assert comment == 'penv (hilbert, 1.00s, 9win): '
    assert_allclose(info['times'], -1. + np.arange(9) * 0.5)
    assert info['n_windows'] == 9

    conn, comment, info = compute(block, options=options.replace(
        win_length=None, henv_measure='coh'))
    assert conn.shape == (2, 2, 1, 2)
    assert comment == 'coh (hilbert, 5.00s, 1win): '
