# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import numpy as np
from mne.utils import logger

from .bands import analytic_signal


def _entropy(*codes, n_bins):
    """Shannon entropy (nats) of the joint distribution of binned series."""
    joint = np.zeros_like(codes[0])
    for code in codes:
        joint = joint * n_bins + code
    counts = np.bincount(joint)
    prob = counts[counts > 0] / len(joint)
    return -np.sum(prob * np.log(prob))


def _phase_delay(phase):
    """Prediction delay: average number of samples between phase flips."""
    n_times, n_signals = phase.shape
    n_flips = np.sum(phase[1:] * phase[:-1] < 0)
    if n_flips == 0:
        return 1
    delay = int(round(n_times * n_signals / n_flips))
    return min(max(delay, 1), n_times - 1)


def phase_transfer_entropy(data):
    """Compute the phase transfer entropy between all pairs of signals.

    Parameters
    ----------
    data : np.ndarray, shape (n_signals, n_times)
        Band-pass filtered signals.

    Returns
    -------
    dpte : np.ndarray, shape (n_signals, n_signals)
        The directed phase transfer entropy, ``pte / (pte + pte.T)``, with a
        zero diagonal. Values above 0.5 indicate information flowing
        preferentially from row to column.
    pte : np.ndarray, shape (n_signals, n_signals)
        The phase transfer entropy from each row to each column.

    Notes
    -----
    The phases are binned with Scott's rule. The prediction delay is the
    number of samples divided by the number of phase sign flips
    :footcite:`LobierEtAl2014`.

    References
    ----------
    .. footbibliography::
    """
    phase = np.angle(analytic_signal(np.real(data))).T
    n_times, n_signals = phase.shape
    delay = _phase_delay(phase)
    bin_width = 3.49 * np.mean(np.std(phase, axis=0, ddof=1)) * \
        n_times ** (-1. / 3)
    if not np.isfinite(bin_width) or bin_width <= 0:
        # no phase variability to bin
        logger.debug('    PTE: constant phases, no information transfer')
        return np.zeros((n_signals, n_signals)), \
            np.zeros((n_signals, n_signals))
    n_bins = max(int(np.ceil(2 * np.pi / bin_width)), 1)
    logger.debug(f'    PTE delay: {delay} samples, {n_bins} phase bins')
    codes = np.clip(np.floor((phase + np.pi) / bin_width).astype(int), 0,
                    n_bins - 1)

    pte = np.zeros((n_signals, n_signals))
    for j in range(n_signals):
        y_future = codes[delay:, j]
        y_past = codes[:-delay, j]
        h_yp = _entropy(y_past, n_bins=n_bins)
        h_ytyp = _entropy(y_future, y_past, n_bins=n_bins)
        for i in range(n_signals):
            if i == j:
                continue
            x_past = codes[:-delay, i]
            pte[i, j] = (h_ytyp + _entropy(y_past, x_past, n_bins=n_bins) -
                         h_yp -
                         _entropy(y_future, y_past, x_past, n_bins=n_bins))

    with np.errstate(invalid='ignore', divide='ignore'):
        dpte = pte / (pte + pte.T)
    np.fill_diagonal(dpte, 0.)
    dpte[~np.isfinite(dpte)] = 0.
    return dpte, pte
