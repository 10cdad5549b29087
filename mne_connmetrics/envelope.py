# Authors: Eric Larson <larson.eric.d@gmail.com>
#          Sheraz Khan <sheraz@khansheraz.com>
#          Denis Engemann <denis.engemann@gmail.com>
#          Adam Li <adam2392@gmail.com>
#          The mne-connmetrics developers
#
# License: BSD (3-clause)

import numpy as np
from mne.time_frequency import tfr_array_morlet
from mne.utils import _check_option, logger, verbose

from .bands import get_band_names, get_bounds, iter_band_analytic
from .correlation import correlate_rows, correlation
from .errors import ConfigurationError
from .utils import fill_doc

_EPS = np.finfo(np.float64).eps


def _orthogonal_amplitude(data, seed):
    """Amplitude of the part of ``data`` orthogonal to ``seed``.

    Parameters
    ----------
    data : np.ndarray, shape (n_rows, n_times)
        Complex analytic signals.
    seed : np.ndarray, shape (n_times,)
        The complex analytic signal of the seed.

    Returns
    -------
    orth : np.ndarray, shape (n_rows, n_times)
        ``|imag(data * conj(seed) / |seed|)|``, with values negligible
        compared to ``|data|`` set to zero.
    """
    with np.errstate(invalid='ignore', divide='ignore'):
        orth = np.imag(data * (seed.conj() / np.abs(seed)))
        tiny = np.abs(orth / np.abs(data)) < 2 * _EPS
    orth[tiny] = 0.
    return np.abs(orth)


def amplitude_envelope_correlation(analytic_a, analytic_b=None,
                                   orthogonalize=False):
    """Correlate the amplitude envelopes of analytic signals.

    Parameters
    ----------
    analytic_a : np.ndarray, shape (n_a, n_times)
        Complex analytic signals of the sources.
    analytic_b : np.ndarray, shape (n_b, n_times) | None
        Complex analytic signals of the targets. If None, the sources are
        used.
    orthogonalize : bool
        Whether to orthogonalize the signals pairwise before computing the
        correlation :footcite:`HippEtAl2012`.

    Returns
    -------
    corr : np.ndarray, shape (n_a, n_b)
        The envelope correlations. With orthogonalization, the two
        directions of each pair are averaged.

    References
    ----------
    .. footbibliography::
    """
    same = analytic_b is None
    if same:
        analytic_b = analytic_a
    if not orthogonalize:
        return correlation(np.abs(analytic_a), np.abs(analytic_b))

    n_a, n_b = analytic_a.shape[0], analytic_b.shape[0]
    corr = np.zeros((n_a, n_b))
    amp_a, amp_b = np.abs(analytic_a), np.abs(analytic_b)
    with np.errstate(invalid='ignore', divide='ignore'):
        for li, seed in enumerate(analytic_a):
            # targets orthogonalized on the seed
            b_orth = _orthogonal_amplitude(analytic_b, seed)
            r_b = correlate_rows(b_orth, amp_a[[li]])
            if same:
                corr[li] = r_b
                continue
            # seed orthogonalized on each target
            a_orth = np.imag(seed[np.newaxis] *
                             (analytic_b.conj() / amp_b))
            tiny = np.abs(a_orth / amp_a[li]) < 2 * _EPS
            a_orth[tiny] = 0.
            r_a = correlate_rows(np.abs(a_orth), amp_b)
            corr[li] = (r_a + r_b) / 2.
    if same:
        # average the two directions
        corr = (corr + corr.T) / 2.
    return corr


########################################################################
# Windowed envelope connectivity


def _coh_window(a, b):
    """Complex coherency of each pair over one window."""
    sab = a @ b.conj().T
    saa = np.sum(np.abs(a) ** 2, axis=-1)
    sbb = np.sum(np.abs(b) ** 2, axis=-1)
    return sab / np.sqrt(saa[:, np.newaxis] * sbb[np.newaxis])


def _henv_coh(a, b):
    return np.abs(_coh_window(a, b))


def _henv_lcoh(a, b):
    coh = _coh_window(a, b)
    return np.abs(np.imag(coh)) / np.sqrt(1 - np.real(coh) ** 2)


def _henv_penv(a, b):
    return correlation(np.abs(a), np.abs(b))


def _henv_oenv(a, b):
    # reuse the pairwise orthogonalization, then keep the magnitude
    n_a, n_b = a.shape[0], b.shape[0]
    corr = np.empty((n_a, n_b))
    mag_a, mag_b = np.abs(a), np.abs(b)
    for li, seed in enumerate(a):
        r_b = correlate_rows(_orthogonal_amplitude(b, seed), mag_a[[li]])
        r_a = np.array([
            correlate_rows(_orthogonal_amplitude(seed[np.newaxis], b[bi]),
                           mag_b[[bi]])[0] for bi in range(n_b)])
        corr[li] = (np.abs(r_a) + np.abs(r_b)) / 2.
    return corr


_HENV_MEASURE_MAP = {
    'coh': _henv_coh,
    'lcoh': _henv_lcoh,
    'penv': _henv_penv,
    'oenv': _henv_oenv,
}


def _morlet_n_cycles(morlet_fc, morlet_fwhm_tc):
    """Number of cycles of Morlet wavelets with a constant time resolution.
    """
    return 2 * np.pi * morlet_fc * morlet_fwhm_tc / np.sqrt(8 * np.log(2))


def _window_starts(n_times, sfreq, win_length, win_overlap):
    if win_length is None:
        return np.array([0]), n_times
    n_win = int(round(win_length * sfreq))
    if n_win < 2 or n_win > n_times:
        raise ConfigurationError(
            f'Invalid window length ({win_length} s = {n_win} samples) for '
            f'signals of {n_times} samples.')
    n_step = max(n_win - int(np.floor(win_overlap * n_win)), 1)
    return np.arange(0, n_times - n_win + 1, n_step), n_win


def _tf_decomposition(data, sfreq, freqs, tf_measure, is_mirror,
                      morlet_fc, morlet_fwhm_tc):
    """Complex time-frequency maps, shape (n_freqs, n_rows, n_times)."""
    if tf_measure == 'hilbert':
        return np.array(list(iter_band_analytic(
            data, sfreq, get_bounds(freqs), is_mirror=is_mirror)))
    n_cycles = _morlet_n_cycles(morlet_fc, morlet_fwhm_tc)
    tfr = tfr_array_morlet(np.real(data)[np.newaxis], sfreq, freqs,
                           n_cycles=n_cycles, output='complex',
                           verbose=False)
    return tfr[0].transpose(1, 0, 2)


@verbose
@fill_doc
def envelope_connectivity(data_a, data_b=None, sfreq=None, freqs=None,
                          measure='coh', tf_measure='hilbert',
                          win_length=None, win_overlap=0.5, is_mirror=True,
                          morlet_fc=1., morlet_fwhm_tc=3., verbose=None):
    """Compute windowed envelope and coherence connectivity.

    Parameters
    ----------
    data_a : np.ndarray, shape (n_a, n_times)
        The source signals.
    data_b : np.ndarray, shape (n_b, n_times) | None
        The target signals. If None, the sources are used.
    %(sfreq)s
    freqs : list of tuple | array-like
        With ``tf_measure='hilbert'``, the frequency bands (see
        :func:`mne_connmetrics.bands.parse_bands`). With
        ``tf_measure='morlet'``, the frequencies of the wavelets in Hz.
    measure : 'coh' | 'lcoh' | 'penv' | 'oenv'
        The connectivity measure: coherence magnitude, lagged coherence,
        plain envelope correlation, or orthogonalized envelope correlation.
    tf_measure : 'hilbert' | 'morlet'
        The time-frequency transform.
    win_length : float | None
        The window length in seconds. If None, a single window spans the
        whole signal.
    win_overlap : float
        The overlap of consecutive windows, in [0, 1).
    %(is_mirror)s
    morlet_fc : float
        The central frequency of the mother wavelet.
    morlet_fwhm_tc : float
        The temporal full width at half maximum of the mother wavelet, in
        seconds.
    %(verbose)s

    Returns
    -------
    conn : np.ndarray, shape (n_a, n_b, n_windows, n_freqs)
        The connectivity in each window and frequency.
    times : np.ndarray, shape (n_windows,)
        The start time of each window relative to the first sample.
    n_windows : int
        The number of windows.
    freq_labels : list
        The band names (Hilbert) or the frequencies (Morlet).
    """
    _check_option('measure', measure, list(_HENV_MEASURE_MAP))
    _check_option('tf_measure', tf_measure, ('hilbert', 'morlet'))
    if tf_measure == 'morlet':
        freqs = np.atleast_1d(np.asarray(freqs, dtype=float))
        if freqs.ndim != 1 or freqs.size == 0:
            raise ConfigurationError('Morlet wavelets need a vector of '
                                     'frequencies.')
        freq_labels = freqs.tolist()
    else:
        freq_labels = get_band_names(freqs)
    n_times = data_a.shape[-1]
    starts, n_win = _window_starts(n_times, sfreq, win_length, win_overlap)
    logger.info(f'    Envelope connectivity ({measure}, {tf_measure}): '
                f'{len(starts)} window(s) of {n_win} samples')

    tf_a = _tf_decomposition(data_a, sfreq, freqs, tf_measure, is_mirror,
                             morlet_fc, morlet_fwhm_tc)
    tf_b = tf_a if data_b is None else _tf_decomposition(
        data_b, sfreq, freqs, tf_measure, is_mirror, morlet_fc,
        morlet_fwhm_tc)

    func = _HENV_MEASURE_MAP[measure]
    conn = np.zeros((data_a.shape[0], tf_b.shape[1], len(starts),
                     len(freq_labels)))
    with np.errstate(invalid='ignore', divide='ignore'):
        for fi in range(len(freq_labels)):
            for wi, start in enumerate(starts):
                sl = slice(start, start + n_win)
                conn[:, :, wi, fi] = func(tf_a[fi][:, sl], tf_b[fi][:, sl])
    return conn, starts / sfreq, len(starts), freq_labels
