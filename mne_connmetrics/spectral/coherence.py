# Authors: Martin Luessi <mluessi@nmr.mgh.harvard.edu>
#          The mne-connmetrics developers
#
# License: BSD (3-clause)

import numpy as np
from mne.utils import _check_option, logger, verbose, warn
from scipy.fft import rfft, rfftfreq
from scipy.signal import get_window

from ..errors import DegenerateEstimateError
from ..utils import fill_doc


def _next_pow2(n):
    """Smallest power of two greater than or equal to ``n``."""
    return int(2 ** np.ceil(np.log2(max(n, 1))))


########################################################################
# Coherence measures


class _CohMeasureBase:
    """Base class of the coherence measures."""

    name = None

    def compute_con(self, coh):
        """Compute the measure from the complex coherency."""
        raise NotImplementedError('compute_con method should be implemented '
                                  'in a subclass.')


class _MSCohMeasure(_CohMeasureBase):
    """Magnitude-squared coherence."""

    name = 'mscohere'

    def compute_con(self, coh):
        return np.abs(coh) ** 2


class _ImCoh2019Measure(_CohMeasureBase):
    """Squared imaginary coherence."""

    name = 'icohere2019'

    def compute_con(self, coh):
        return np.imag(coh) ** 2


class _LagCoh2019Measure(_CohMeasureBase):
    """Lagged coherence."""

    name = 'lcohere2019'

    def compute_con(self, coh):
        with np.errstate(invalid='ignore', divide='ignore'):
            return np.imag(coh) ** 2 / (1 - np.real(coh) ** 2)


class _ImCohMeasure(_CohMeasureBase):
    """Absolute imaginary coherence (legacy)."""

    name = 'icohere'

    def compute_con(self, coh):
        return np.abs(np.imag(coh))


_COH_MEASURE_MAP = {
    'mscohere': _MSCohMeasure,
    'icohere2019': _ImCoh2019Measure,
    'lcohere2019': _LagCoh2019Measure,
    'icohere': _ImCohMeasure,
}


########################################################################
# Cross-spectral accumulation


class _CrossSpectrumAccumulator:
    """Sum the auto and cross spectra of windowed signals.

    Parameters
    ----------
    n_win : int
        The window length, in samples.
    n_overlap : int
        The overlap of consecutive windows, in samples.
    n_fft : int
        The FFT length.
    kernel_a, kernel_b : np.ndarray | None
        Imaging kernels projecting the spectra of the data rows to the
        spectra of the sources.
    """

    def __init__(self, n_win, n_overlap, n_fft, kernel_a=None,
                 kernel_b=None):
        self.n_win = n_win
        self.n_step = n_win - n_overlap
        self.n_overlap = n_overlap
        self.n_fft = n_fft
        self.kernel_a = kernel_a
        self.kernel_b = kernel_b
        self.window = get_window('hamming', n_win, fftbins=False)
        self.n_windows = 0
        self._sxx = self._syy = self._sxy = None

    def _spectra(self, data, kernel):
        n_times = data.shape[-1]
        n_windows = (n_times - self.n_overlap) // self.n_step
        if n_windows < 1:
            raise DegenerateEstimateError(
                f'The signals ({n_times} samples) are shorter than one '
                f'coherence window ({self.n_win} samples).')
        segs = np.lib.stride_tricks.sliding_window_view(
            data, self.n_win, axis=-1)[:, ::self.n_step][:, :n_windows]
        segs = segs - segs.mean(axis=-1, keepdims=True)
        spectra = rfft(segs * self.window, n=self.n_fft, axis=-1)
        if kernel is not None:
            spectra = np.tensordot(kernel, spectra, axes=([1], [0]))
        return spectra, n_windows

    def accumulate(self, data_a, data_b=None):
        """Add the windows of one trial."""
        fx, n_windows = self._spectra(data_a, self.kernel_a)
        if data_b is None:
            fy = fx
        else:
            if data_b.shape[-1] != data_a.shape[-1]:
                raise DegenerateEstimateError(
                    'The trials of A and B must have the same number of time '
                    f'samples, got {data_a.shape[-1]} and '
                    f'{data_b.shape[-1]}.')
            fy = self._spectra(data_b, self.kernel_b)[0]
        sxx = np.sum(np.abs(fx) ** 2, axis=1)
        syy = sxx if data_b is None else np.sum(np.abs(fy) ** 2, axis=1)
        sxy = np.einsum('awf,bwf->abf', fx, fy.conj())
        if self._sxy is None:
            self._sxx, self._syy, self._sxy = sxx, syy, sxy
        else:
            self._sxx = self._sxx + sxx
            self._syy = self._syy + syy
            self._sxy = self._sxy + sxy
        self.n_windows += n_windows

    def coherency(self):
        """Complex coherency, shape (n_a, n_b, n_freqs)."""
        if self._sxy is None:
            raise DegenerateEstimateError('No trial was accumulated.')
        with np.errstate(invalid='ignore', divide='ignore'):
            return self._sxy / np.sqrt(self._sxx[:, np.newaxis] *
                                       self._syy[np.newaxis])


@verbose
@fill_doc
def cross_spectral_coherence(trials_a, trials_b, sfreq, n_win, n_fft,
                             overlap=0.5, measure='mscohere', max_freq=None,
                             kernel_a=None, kernel_b=None, verbose=None):
    """Compute the coherence between two sets of signals.

    Parameters
    ----------
    trials_a : iterable of np.ndarray, shape (n_rows_a, n_times)
        The trials of the source signals. Can be a lazy sequence, which is
        iterated over once.
    trials_b : iterable of np.ndarray, shape (n_rows_b, n_times) | None
        The trials of the target signals. If None, the source signals are
        used.
    %(sfreq)s
    n_win : int
        The window length, in samples.
    n_fft : int
        The FFT length.
    overlap : float
        The overlap of consecutive windows, in [0, 1).
    measure : str
        The coherence measure, ``'mscohere'``, ``'icohere2019'``,
        ``'lcohere2019'`` or ``'icohere'``.
    max_freq : float | None
        The highest frequency to keep.
    kernel_a, kernel_b : np.ndarray | None
        Imaging kernels applied to the spectra of the trials.
    %(verbose)s

    Returns
    -------
    coh : np.ndarray, shape (n_a, n_b, n_freqs)
        The coherence, without the 0 Hz bin.
    freqs : np.ndarray, shape (n_freqs,)
        The frequencies.
    n_windows : int
        The total number of windows.

    Notes
    -----
    Each window is detrended by its mean and tapered with a Hamming window.
    Auto and cross spectra are summed over all the windows of all the
    trials before the coherency is formed.
    """
    _check_option('measure', measure, list(_COH_MEASURE_MAP))
    n_overlap = int(np.floor(overlap * n_win))
    acc = _CrossSpectrumAccumulator(n_win, n_overlap, n_fft,
                                    kernel_a=kernel_a,
                                    kernel_b=kernel_b if trials_b is not None
                                    else kernel_a)
    if trials_b is None:
        for data_a in trials_a:
            acc.accumulate(np.asarray(data_a))
    else:
        for data_a, data_b in zip(trials_a, trials_b):
            acc.accumulate(np.asarray(data_a), np.asarray(data_b))
    logger.info('    Using %d windows of %d samples each'
                % (acc.n_windows, n_win))
    con = _COH_MEASURE_MAP[measure]().compute_con(acc.coherency())

    freqs = rfftfreq(n_fft, 1. / sfreq)
    # coherence at 0 Hz is meaningless
    keep = freqs > 0
    if max_freq is not None:
        keep &= freqs <= max_freq
        if not keep.any():
            raise DegenerateEstimateError(
                'No frequencies estimated below the highest frequency of '
                f'interest ({max_freq:1.2f}Hz). Nothing to save...')
    return con[..., keep], freqs[keep], acc.n_windows


def coherence_window_params(sfreq, n_times, win_len=None, max_freq_res=None):
    """Get the window and FFT lengths of the coherence.

    Parameters
    ----------
    sfreq : float
        The sampling frequency.
    n_times : int
        The number of samples of the shortest trial.
    win_len : float | None
        The window length, in seconds. If given, the FFT length is the next
        power of two above twice the window length.
    max_freq_res : float | None
        The highest acceptable frequency resolution, used when ``win_len``
        is None. The window length is then the next power of two above
        ``sfreq / max_freq_res`` samples and equals the FFT length.

    Returns
    -------
    n_win : int
        The window length in samples.
    n_fft : int
        The FFT length.
    """
    if win_len is not None:
        n_win = int(round(win_len * sfreq))
        if n_win < 2:
            raise DegenerateEstimateError(
                f'The coherence window ({win_len} s) is shorter than two '
                'samples.')
        return n_win, _next_pow2(2 * n_win)
    n_win = _next_pow2(int(round(sfreq / max_freq_res)))
    if n_win > n_times:
        warn(f'The frequency resolution ({max_freq_res} Hz) requires '
             f'windows of {n_win} samples, longer than the signals '
             f'({n_times} samples). Using windows of {n_times} samples.')
        n_win = n_times
    return n_win, n_win
