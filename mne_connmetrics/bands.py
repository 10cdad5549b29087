# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import re

import numpy as np
from mne.filter import filter_data, next_fast_len
from mne.utils import _check_option, logger, warn
from scipy.signal import hilbert

from .errors import ConfigurationError
from .utils import fill_doc

DEFAULT_BANDS = [
    ('delta', '2, 4', 'mean'),
    ('theta', '5, 7', 'mean'),
    ('alpha', '8, 12', 'mean'),
    ('beta', '15, 29', 'mean'),
    ('gamma1', '30, 59', 'mean'),
    ('gamma2', '60, 90', 'mean'),
]

BAND_FUNCS = ('mean', 'max', 'std', 'median')

FULL_SPECTRUM = 'broadband'


def is_full_spectrum(freqs):
    """Whether a frequency specification means the full spectrum."""
    if freqs is None:
        return True
    if np.isscalar(freqs):
        return freqs == 0
    return len(freqs) == 0


@fill_doc
def parse_bands(freqs):
    """Parse a frequency band specification.

    Parameters
    ----------
    %(freqs_spec)s

    Returns
    -------
    names : list of str
        The names of the bands.
    bounds : np.ndarray, shape (n_bands, 2)
        The lower and upper bound of each band, in Hz.
    funcs : list of str
        The function used to average the frequency bins of each band.
    """
    if is_full_spectrum(freqs):
        raise ConfigurationError('A full-spectrum specification does not '
                                 'define any frequency band.')
    names, bounds, funcs = list(), list(), list()
    if all(isinstance(band, (tuple, list)) and len(band) == 3 and
           isinstance(band[0], str) for band in freqs):
        for name, band_bounds, func in freqs:
            if isinstance(band_bounds, str):
                band_bounds = [float(val) for val in
                               re.split(r'[,\s]+', band_bounds.strip()) if val]
            band_bounds = np.asarray(band_bounds, dtype=float).ravel()
            if band_bounds.size != 2:
                raise ConfigurationError(
                    f'Invalid bounds for frequency band "{name}": '
                    f'{band_bounds.tolist()}')
            try:
                _check_option('band function', func, BAND_FUNCS)
            except ValueError as exp:
                raise ConfigurationError(str(exp)) from None
            names.append(name)
            bounds.append(band_bounds)
            funcs.append(func)
    else:
        arr = np.asarray(freqs, dtype=float)
        if arr.ndim != 2 or arr.shape[1] != 2:
            raise ConfigurationError(
                'Frequency bands must be a list of (name, bounds, function) '
                f'or an array of shape (n_bands, 2), got {freqs!r}.')
        for low, high in arr:
            names.append(f'{low:g}-{high:g}Hz')
            bounds.append(np.array([low, high]))
            funcs.append('mean')
    bounds = np.array(bounds)
    if np.any(bounds[:, 0] > bounds[:, 1]):
        raise ConfigurationError('The lower bound of a frequency band must '
                                 'not exceed its upper bound.')
    return names, bounds, funcs


@fill_doc
def get_bounds(freqs):
    """Get the numeric bounds of frequency bands.

    Parameters
    ----------
    %(freqs_spec)s

    Returns
    -------
    bounds : np.ndarray, shape (n_bands, 2) | None
        The band bounds in Hz, or None for the full spectrum.
    """
    if is_full_spectrum(freqs):
        return None
    return parse_bands(freqs)[1]


def get_band_names(freqs):
    """Get the names of the frequency bands (one name for the full spectrum).
    """
    if is_full_spectrum(freqs):
        return [FULL_SPECTRUM]
    return parse_bands(freqs)[0]


@fill_doc
def bandpass_filter(data, sfreq, l_freq, h_freq, is_mirror=True):
    """Band-pass filter signals with a zero-phase FIR filter.

    Parameters
    ----------
    data : np.ndarray, shape (n_rows, n_times)
        The signals to filter.
    %(sfreq)s
    l_freq : float | None
        The low cut-off frequency. None or 0 disables the high-pass.
    h_freq : float | None
        The high cut-off frequency. None, or any value above the Nyquist
        frequency, disables the low-pass.
    %(is_mirror)s

    Returns
    -------
    data : np.ndarray, shape (n_rows, n_times)
        The filtered signals.
    """
    if l_freq is not None and l_freq <= 0:
        l_freq = None
    if h_freq is not None and h_freq >= sfreq / 2.:
        h_freq = None
    if l_freq is None and h_freq is None:
        return np.array(data, dtype=np.float64)
    pad = 'reflect_limited' if is_mirror else 'constant'
    return filter_data(np.array(data, dtype=np.float64), sfreq, l_freq,
                       h_freq, method='fir', pad=pad, verbose=False)


def analytic_signal(data):
    """Compute the analytic signal of the rows with the Hilbert transform.

    Parameters
    ----------
    data : np.ndarray, shape (n_rows, n_times)
        Real signals.

    Returns
    -------
    analytic : np.ndarray, shape (n_rows, n_times)
        Complex analytic signals.
    """
    n_times = data.shape[-1]
    n_fft = next_fast_len(n_times)
    return hilbert(data, N=n_fft, axis=-1)[..., :n_times]


def iter_band_analytic(data, sfreq, bounds, is_mirror=True):
    """Band-pass filter and Hilbert-transform signals, band by band.

    Parameters
    ----------
    data : np.ndarray, shape (n_rows, n_times)
        Real signals.
    sfreq : float
        The sampling frequency.
    bounds : np.ndarray, shape (n_bands, 2) | None
        The bands. If None, the unfiltered signals are transformed.
    is_mirror : bool
        The padding used by the filter.

    Yields
    ------
    analytic : np.ndarray, shape (n_rows, n_times)
        The analytic signal in each band.
    """
    if bounds is None:
        yield analytic_signal(np.real(data))
        return
    for low, high in bounds:
        logger.debug(f'    Band-pass filtering {low:g}-{high:g} Hz')
        yield analytic_signal(bandpass_filter(np.real(data), sfreq, low,
                                              high, is_mirror=is_mirror))


def average_bands(data, freqs, bands):
    """Average spectral estimates within frequency bands.

    Parameters
    ----------
    data : np.ndarray, shape (..., n_freqs)
        The spectral estimates, frequency last.
    freqs : array-like, shape (n_freqs,)
        The frequency of each bin.
    bands : list of tuple | array-like
        The band specification (see :func:`parse_bands`).

    Returns
    -------
    data : np.ndarray, shape (..., n_bands)
        The estimates averaged in each band.
    names : list of str
        The band names.
    bounds : np.ndarray, shape (n_bands, 2)
        The band bounds.
    """
    names, bounds, funcs = parse_bands(bands)
    freqs = np.asarray(freqs, dtype=float)
    out = np.zeros(data.shape[:-1] + (len(names),), dtype=data.dtype)
    for ii, ((low, high), func) in enumerate(zip(bounds, funcs)):
        mask = (freqs >= low) & (freqs <= high)
        if not mask.any():
            warn(f'No frequency bin in band "{names[ii]}" '
                 f'({low:g}-{high:g} Hz), its values are set to zero.')
            continue
        band = data[..., mask]
        if func == 'mean':
            out[..., ii] = band.mean(axis=-1)
        elif func == 'max':
            out[..., ii] = band.max(axis=-1)
        elif func == 'std':
            out[..., ii] = band.std(axis=-1)
        else:
            out[..., ii] = np.median(band, axis=-1)
    return out, names, bounds
