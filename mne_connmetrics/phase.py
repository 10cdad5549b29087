# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import numpy as np

_EPS = np.finfo(np.float64).eps


def unit_phase(analytic):
    """Normalize analytic signals to unit magnitude."""
    with np.errstate(invalid='ignore', divide='ignore'):
        return analytic / np.abs(analytic)


def _cross_phase(phase_a, phase_b):
    """Pairwise phase products, shape (n_a, n_b, n_times)."""
    return phase_a[:, np.newaxis, :] * np.conj(phase_b)[np.newaxis, :, :]


def plv(phase_a, phase_b):
    """Complex phase-locking value of every pair of rows.

    Parameters
    ----------
    phase_a : np.ndarray, shape (n_a, n_times)
        Unit-magnitude analytic signals of the sources.
    phase_b : np.ndarray, shape (n_b, n_times)
        Unit-magnitude analytic signals of the targets.

    Returns
    -------
    plv : np.ndarray, shape (n_a, n_b)
        The average of ``exp(i * (phi_a - phi_b))`` over time.
    """
    return (phase_a @ phase_b.conj().T) / phase_a.shape[1]


def ciplv(phase_a, phase_b):
    """Corrected imaginary PLV :footcite:`BrunaEtAl2018`.

    Returns
    -------
    ciplv : np.ndarray, shape (n_a, n_b)
        ``imag(plv) / sqrt(1 + eps - real(plv) ** 2)``.

    References
    ----------
    .. footbibliography::
    """
    csd = plv(phase_a, phase_b)
    return np.imag(csd) / np.sqrt(1 + _EPS - np.real(csd) ** 2)


def wpli(phase_a, phase_b):
    """Weighted phase lag index :footcite:`VinckEtAl2011`.

    Returns
    -------
    wpli : np.ndarray, shape (n_a, n_b)
        ``mean(sin(dphi)) / mean(|sin(dphi)|)``, signed.

    References
    ----------
    .. footbibliography::
    """
    dphi = np.imag(_cross_phase(phase_a, phase_b))
    with np.errstate(invalid='ignore', divide='ignore'):
        return dphi.mean(axis=-1) / np.abs(dphi).mean(axis=-1)


def plv_time(phase_a, phase_b):
    """Instantaneous phase synchrony ``exp(i * dphi(t))``.

    Returns
    -------
    plvt : np.ndarray, shape (n_a, n_b, n_times)
        Complex values of unit magnitude.
    """
    return _cross_phase(phase_a, phase_b)


def ciplv_time(phase_a, phase_b):
    """Instantaneous imaginary phase synchrony ``sin(dphi(t))``."""
    return np.imag(_cross_phase(phase_a, phase_b))


def wpli_time(phase_a, phase_b):
    """Instantaneous phase lag sign ``sign(sin(dphi(t)))``."""
    return np.sign(np.imag(_cross_phase(phase_a, phase_b)))
