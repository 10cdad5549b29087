# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import numpy as np
from mne.utils import ProgressBar, logger, verbose

from ..utils import fill_doc
from .var import _fit_var, _residual_variance, _split_trials


def _pairs(n_sinks, n_sources, same):
    for i in range(n_sinks):
        for j in range(n_sources):
            if same and i == j:
                continue
            yield i, j


@verbose
@fill_doc
def granger_causality(sink, source=None, order=10, n_trials=1,
                      verbose=None):
    """Compute the bivariate time-domain Granger causality.

    Parameters
    ----------
    sink : np.ndarray, shape (n_sinks, n_trials * n_times)
        The signals whose prediction is tested.
    source : np.ndarray, shape (n_sources, n_trials * n_times) | None
        The candidate driving signals. If None, every pair of rows of
        ``sink`` is tested.
    order : int
        The order of the autoregressive models.
    n_trials : int
        The number of trials concatenated along time.
    %(verbose)s

    Returns
    -------
    gc : np.ndarray, shape (n_sinks, n_sources)
        ``gc[i, j]`` is the Granger causality from ``source[j]`` to
        ``sink[i]``, ``log(var_restricted / var_full)``. When ``source`` is
        None, the diagonal is zero.

    Notes
    -----
    Each trial is standardized. The restricted model predicts the sink from
    its own past only, the full model from the past of both signals.
    """
    same = source is None
    sink_trials = _split_trials(np.asarray(sink, dtype=np.float64), n_trials)
    source_trials = sink_trials if same else _split_trials(
        np.asarray(source, dtype=np.float64), n_trials)
    n_sinks, n_sources = sink_trials.shape[1], source_trials.shape[1]
    logger.info(f'    Granger causality of order {order}, '
                f'{n_sinks} x {n_sources} signals, {n_trials} trial(s)')

    restricted = np.array([
        _residual_variance(sink_trials[:, [i]], order)[0]
        for i in range(n_sinks)])
    gc = np.zeros((n_sinks, n_sources))
    pairs = list(_pairs(n_sinks, n_sources, same))
    for i, j in ProgressBar(pairs, mesg='Granger pairs'):
        pair = np.stack([sink_trials[:, i], source_trials[:, j]], axis=1)
        full = _residual_variance(pair, order)[0]
        gc[i, j] = np.log(restricted[i] / full)
    return gc


def _transfer_function(coefs, freqs, sfreq):
    """Transfer function H(f) of a VAR model, shape (n_freqs, n, n)."""
    lags = np.arange(1, coefs.shape[0] + 1)
    phases = np.exp(-2j * np.pi * np.outer(freqs, lags) / sfreq)
    a_f = np.eye(coefs.shape[1]) - np.einsum('fk,kij->fij', phases, coefs)
    return np.linalg.inv(a_f)


@verbose
@fill_doc
def spectral_granger_causality(sink, source=None, sfreq=1., order=10,
                               freq_res=1., n_trials=1, verbose=None):
    """Compute the bivariate spectral Granger causality.

    Parameters
    ----------
    sink : np.ndarray, shape (n_sinks, n_trials * n_times)
        The signals whose prediction is tested.
    source : np.ndarray, shape (n_sources, n_trials * n_times) | None
        The candidate driving signals. If None, every pair of rows of
        ``sink`` is tested.
    sfreq : float
        The sampling frequency.
    order : int
        The order of the autoregressive models.
    freq_res : float
        The frequency resolution: the spectrum is evaluated at
        ``0, freq_res, 2 * freq_res, ...`` up to ``sfreq / 2``.
    n_trials : int
        The number of trials concatenated along time.
    %(verbose)s

    Returns
    -------
    gc : np.ndarray, shape (n_sinks, n_sources, n_freqs)
        The spectral Granger causality from ``source[j]`` to ``sink[i]``.
    freqs : np.ndarray, shape (n_freqs,)
        The frequencies, starting at 0 Hz.

    Notes
    -----
    Geweke's decomposition of the bivariate model ``[sink, source]``
    :footcite:`Geweke1982`::

        I(f) = log(S_yy / (S_yy - (s_xx - s_xy ** 2 / s_yy) |H_yx| ** 2))

    References
    ----------
    .. footbibliography::
    """
    same = source is None
    sink_trials = _split_trials(np.asarray(sink, dtype=np.float64), n_trials)
    source_trials = sink_trials if same else _split_trials(
        np.asarray(source, dtype=np.float64), n_trials)
    n_sinks, n_sources = sink_trials.shape[1], source_trials.shape[1]
    freqs = np.arange(0, sfreq / 2. + freq_res * 1e-6, freq_res)
    logger.info(f'    Spectral Granger causality of order {order}, '
                f'{len(freqs)} frequencies')

    gc = np.zeros((n_sinks, n_sources, len(freqs)))
    pairs = list(_pairs(n_sinks, n_sources, same))
    for i, j in ProgressBar(pairs, mesg='Spectral Granger pairs'):
        pair = np.stack([sink_trials[:, i], source_trials[:, j]], axis=1)
        coefs, sigma = _fit_var(pair, order)
        H = _transfer_function(coefs, freqs, sfreq)
        S = np.einsum('fij,jk,flk->fil', H, sigma, H.conj()).real
        s_yy = S[:, 0, 0]
        intrinsic = sigma[1, 1] - sigma[0, 1] ** 2 / sigma[0, 0]
        with np.errstate(invalid='ignore', divide='ignore'):
            gc[i, j] = np.log(
                s_yy / (s_yy - intrinsic * np.abs(H[:, 0, 1]) ** 2))
    return gc, freqs
