# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import numpy as np
from mne.utils import _validate_type, logger, verbose

from .bands import (get_band_names, get_bounds, is_full_spectrum,
                    iter_band_analytic, bandpass_filter, parse_bands)
from .base import SignalBlock, TrialList
from .correlation import correlation
from .envelope import amplitude_envelope_correlation, envelope_connectivity
from .errors import DegenerateEstimateError, UnsupportedCombinationError
from .options import ConnectivityOptions
from .phase import (ciplv, ciplv_time, plv, plv_time, unit_phase, wpli,
                    wpli_time)
from .pte import phase_transfer_entropy
from .spectral import coherence_window_params, cross_spectral_coherence
from .utils import fill_doc
from .vector_ar import granger_causality, spectral_granger_causality


def _band_info(freqs):
    """Frequency description of band-limited estimates."""
    if is_full_spectrum(freqs):
        return dict(freqs=get_band_names(freqs), freq_bands=None)
    names, bounds, funcs = parse_bands(freqs)
    freq_bands = [[name, float(low), float(high), func]
                  for name, (low, high), func in zip(names, bounds, funcs)]
    return dict(freqs=names, freq_bands=freq_bands)


def _drop_zero_and_truncate(conn, freqs, max_freq):
    """Remove the 0 Hz bin and the bins above ``max_freq`` (last axis)."""
    keep = freqs != 0
    if max_freq is not None:
        keep &= freqs <= max_freq
        if not keep.any():
            raise DegenerateEstimateError(
                'No frequencies estimated below the highest frequency of '
                f'interest ({max_freq:1.2f}Hz). Nothing to save...')
    return conn[..., keep], freqs[keep]


########################################################################
# Connectivity estimators


class _ConnEstBase:
    """Base class of the connectivity estimators.

    Parameters
    ----------
    options : ConnectivityOptions
        The connectivity options.
    """

    name = None
    label = None
    symmetric = False
    phase = False
    time_resolved = False
    accepts_trials = False

    def __init__(self, options):
        self.options = options

    def describe(self, n_a, n_b):
        """Progress message of the computation."""
        return f'Calculating: {self.label} [{n_a}x{n_b}]...'

    def compute(self, block_a, block_b, is_nn, n_trials):
        """Estimate the connectivity.

        Returns
        -------
        conn : np.ndarray, shape (n_a, n_b, n_times, n_freqs)
            The connectivity.
        comment : str
            The comment prefix of the method.
        freq_info : dict
            Frequencies (``'freqs'``), band definitions (``'freq_bands'``)
            and, for time-resolved estimates, the time vector
            (``'times'``).
        """
        raise NotImplementedError('compute method should be implemented in '
                                  'a subclass.')

    def _data(self, block_a, block_b, is_nn):
        data_a = block_a.get_data()
        return data_a, (None if is_nn else block_b.get_data())


class _CorrEst(_ConnEstBase):
    """Pearson correlation."""

    name = 'corr'
    label = 'Correlation'
    symmetric = True

    def compute(self, block_a, block_b, is_nn, n_trials):
        data_a, data_b = self._data(block_a, block_b, is_nn)
        conn = correlation(data_a, data_b, self.options.remove_mean)
        return conn[..., np.newaxis, np.newaxis], 'Corr: ', dict(freqs=[0.])


class _CohereEst(_ConnEstBase):
    """Coherence."""

    name = 'cohere'
    label = 'Coherence'
    symmetric = True
    accepts_trials = True

    def describe(self, n_a, n_b):
        if n_a > 1 and n_b > 1:
            return super().describe(n_a, n_b)
        return 'Calculating: Coherence...'

    @staticmethod
    def _trials(block):
        if isinstance(block, TrialList):
            return block, block.template
        return [block.data], block

    def compute(self, block_a, block_b, is_nn, n_trials):
        opts = self.options
        trials_a, template_a = self._trials(block_a)
        if is_nn:
            trials_b, template_b = None, template_a
        else:
            trials_b, template_b = self._trials(block_b)
        sfreq = template_a.sfreq
        n_win, n_fft = coherence_window_params(
            sfreq, template_a.n_times, win_len=opts.win_len,
            max_freq_res=opts.max_freq_res)
        conn, freqs, n_windows = cross_spectral_coherence(
            trials_a, trials_b, sfreq, n_win, n_fft,
            overlap=opts.coh_overlap, measure=opts.coh_measure,
            max_freq=opts.max_freq or None,
            kernel_a=template_a.imaging_kernel,
            kernel_b=template_b.imaging_kernel)
        f_step = freqs[1] - freqs[0] if len(freqs) > 1 else sfreq / n_fft
        precision = '%1.2f' if f_step < 0.1 else '%1.1f'
        comment = ('%s(' + precision + 'Hz,%dwin): ') % (
            opts.coh_measure, f_step, n_windows)
        info = dict(freqs=freqs.tolist(), n_windows=n_windows,
                    n_win_samples=n_win)
        return conn[:, :, np.newaxis, :], comment, info


class _GrangerEst(_ConnEstBase):
    """Time-domain Granger causality."""

    name = 'granger'
    label = 'Granger'

    def _sink_source(self, data_a, data_b):
        """Pick the sink and source, and whether to transpose."""
        if data_a.shape[0] == 1 and self.options.granger_dir == 'in':
            return data_a, data_b, False
        sink = data_a if data_b is None else data_b
        source = None if data_b is None else data_a
        return sink, source, True

    def _comment(self, n_a, prefix):
        if n_a == 1:
            return f'{prefix}({self.options.granger_dir}): '
        return f'{prefix}: '

    def compute(self, block_a, block_b, is_nn, n_trials):
        data_a, data_b = self._data(block_a, block_b, is_nn)
        sink, source, transpose = self._sink_source(data_a, data_b)
        conn = granger_causality(sink, source,
                                 order=int(self.options.granger_order),
                                 n_trials=n_trials)
        # [sink x source] => [from x to]
        if transpose:
            conn = conn.T
        return (conn[..., np.newaxis, np.newaxis],
                self._comment(data_a.shape[0], 'Granger'), dict(freqs=[0.]))


class _SpGrangerEst(_GrangerEst):
    """Spectral Granger causality."""

    name = 'spgranger'
    label = 'Granger spectral'

    def compute(self, block_a, block_b, is_nn, n_trials):
        opts = self.options
        data_a, data_b = self._data(block_a, block_b, is_nn)
        sink, source, transpose = self._sink_source(data_a, data_b)
        conn, freqs = spectral_granger_causality(
            sink, source, sfreq=block_a.sfreq, order=int(opts.granger_order),
            freq_res=opts.max_freq_res, n_trials=n_trials)
        if transpose:
            conn = conn.transpose(1, 0, 2)
        conn, freqs = _drop_zero_and_truncate(conn, freqs,
                                              opts.max_freq or None)
        f_step = freqs[1] - freqs[0] if len(freqs) > 1 else opts.max_freq_res
        if data_a.shape[0] == 1:
            comment = 'SpGranger(%s,%1.1fHz): ' % (opts.granger_dir, f_step)
        else:
            comment = 'SpGranger(%1.1fHz): ' % (f_step,)
        return conn[:, :, np.newaxis, :], comment, dict(freqs=freqs.tolist())


class _BandEstBase(_ConnEstBase):
    """Base class of the estimators working band by band."""

    def _iter_analytic(self, block_a, block_b, is_nn):
        """Yield the analytic signals of A and B in each band."""
        opts = self.options
        bounds = get_bounds(opts.freqs)
        sfreq = block_a.sfreq
        gen_a = iter_band_analytic(block_a.get_data(), sfreq, bounds,
                                   is_mirror=opts.is_mirror)
        if is_nn:
            for analytic_a in gen_a:
                yield analytic_a, analytic_a
        else:
            gen_b = iter_band_analytic(block_b.get_data(), sfreq, bounds,
                                       is_mirror=opts.is_mirror)
            yield from zip(gen_a, gen_b)


class _AECEst(_BandEstBase):
    """Amplitude envelope correlation (legacy)."""

    name = 'aec'
    label = 'AEC'
    symmetric = True

    def compute(self, block_a, block_b, is_nn, n_trials):
        info = _band_info(self.options.freqs)
        conn = list()
        for analytic_a, analytic_b in self._iter_analytic(block_a, block_b,
                                                          is_nn):
            conn.append(amplitude_envelope_correlation(
                analytic_a, None if is_nn else analytic_b,
                orthogonalize=self.options.is_orth))
        conn = np.stack(conn, axis=-1)[:, :, np.newaxis, :]
        return conn, 'AEC: ', info


class _PhaseEstBase(_BandEstBase):
    """Base class of the phase-locking estimators."""

    phase = True
    symmetric = True
    _func = None
    _comment = None

    def describe(self, n_a, n_b):
        prefix = 'Time-resolved ' if self.time_resolved else ''
        return f'Calculating: {prefix}{self.name.upper()} [{n_a}x{n_b}]...'

    def compute(self, block_a, block_b, is_nn, n_trials):
        info = _band_info(self.options.freqs)
        conn = list()
        for analytic_a, analytic_b in self._iter_analytic(block_a, block_b,
                                                          is_nn):
            conn.append(self._func(unit_phase(analytic_a),
                                   unit_phase(analytic_b)))
        conn = np.stack(conn, axis=-1)
        if self.time_resolved:
            info['times'] = block_b.times
        else:
            conn = conn[:, :, np.newaxis, :]
        return conn, self._comment, info


class _PLVEst(_PhaseEstBase):
    """Phase-locking value."""

    name = 'plv'
    _func = staticmethod(plv)
    _comment = 'PLV: '


class _CiPLVEst(_PhaseEstBase):
    """Corrected imaginary phase-locking value."""

    name = 'ciplv'
    _func = staticmethod(ciplv)
    _comment = 'ciPLV: '


class _WPLIEst(_PhaseEstBase):
    """Weighted phase lag index."""

    name = 'wpli'
    _func = staticmethod(wpli)
    _comment = 'wPLI: '


class _PLVtEst(_PhaseEstBase):
    """Time-resolved phase-locking value."""

    name = 'plvt'
    time_resolved = True
    _func = staticmethod(plv_time)
    _comment = 'PLVt: '


class _CiPLVtEst(_PhaseEstBase):
    """Time-resolved corrected imaginary phase-locking value."""

    name = 'ciplvt'
    time_resolved = True
    _func = staticmethod(ciplv_time)
    _comment = 'ciPLVt: '


class _WPLItEst(_PhaseEstBase):
    """Time-resolved weighted phase lag index."""

    name = 'wplit'
    time_resolved = True
    _func = staticmethod(wpli_time)
    _comment = 'wPLIt: '


class _PTEEst(_BandEstBase):
    """Phase transfer entropy."""

    name = 'pte'
    label = 'PTE'

    def compute(self, block_a, block_b, is_nn, n_trials):
        opts = self.options
        info = _band_info(opts.freqs)
        bounds = get_bounds(opts.freqs)
        data_a = block_a.get_data()
        n_a = data_a.shape[0]
        # directed measure: run on all the rows, keep the A x B block
        data = data_a if is_nn else np.concatenate(
            [data_a, block_b.get_data()], axis=0)
        sfreq = block_a.sfreq
        conn = list()
        for low, high in ([(None, None)] if bounds is None else bounds):
            filtered = bandpass_filter(np.real(data), sfreq, low, high,
                                       is_mirror=opts.is_mirror)
            dpte, pte = phase_transfer_entropy(filtered)
            values = dpte if opts.is_normalized else pte
            conn.append(values if is_nn else values[:n_a, n_a:])
        conn = np.stack(conn, axis=-1)[:, :, np.newaxis, :]
        comment = 'PTE [Normalized]: ' if opts.is_normalized else 'PTE: '
        return conn, comment, info


class _HenvEst(_ConnEstBase):
    """Windowed envelope and coherence connectivity."""

    name = 'henv'
    symmetric = True
    time_resolved = True

    def describe(self, n_a, n_b):
        return f'Calculating: {self.options.henv_measure} [{n_a}x{n_b}]...'

    def compute(self, block_a, block_b, is_nn, n_trials):
        opts = self.options
        data_a, data_b = self._data(block_a, block_b, is_nn)
        sfreq = block_a.sfreq
        conn, times, n_windows, freq_labels = envelope_connectivity(
            data_a, data_b, sfreq=sfreq, freqs=opts.freqs,
            measure=opts.henv_measure, tf_measure=opts.tf_measure,
            win_length=opts.win_length, win_overlap=opts.win_overlap,
            is_mirror=opts.is_mirror, morlet_fc=opts.morlet_fc,
            morlet_fwhm_tc=opts.morlet_fwhm_tc)
        win_length = opts.win_length if opts.win_length is not None \
            else block_a.n_times / sfreq
        comment = '%s (%s, %1.2fs, %dwin): ' % (
            opts.henv_measure, opts.tf_measure, win_length, n_windows)
        if opts.tf_measure == 'hilbert':
            info = _band_info(opts.freqs)
        else:
            info = dict(freqs=freq_labels)
        info['times'] = times + block_b.times[0]
        info['n_windows'] = n_windows
        return conn, comment, info


_METHOD_MAP = {
    'corr': _CorrEst,
    'cohere': _CohereEst,
    'granger': _GrangerEst,
    'spgranger': _SpGrangerEst,
    'aec': _AECEst,
    'plv': _PLVEst,
    'ciplv': _CiPLVEst,
    'wpli': _WPLIEst,
    'plvt': _PLVtEst,
    'ciplvt': _CiPLVtEst,
    'wplit': _WPLItEst,
    'pte': _PTEEst,
    'henv': _HenvEst,
}


def get_estimator(options):
    """Get the estimator of the connectivity method of the options."""
    return _METHOD_MAP[options.method](options)


def _n_rows(block):
    return (block.template if isinstance(block, TrialList) else block).n_rows


@verbose
@fill_doc
def compute(block_a, block_b=None, options=None, n_trials=1, verbose=None):
    """Compute the connectivity between the rows of two signal blocks.

    Parameters
    ----------
    %(block_a)s
    %(block_b)s
    %(options)s
    n_trials : int
        The number of trials concatenated along time in the blocks, used by
        the Granger causality estimators.
    %(verbose)s

    Returns
    -------
    conn : np.ndarray, shape (n_a, n_b, n_times, n_freqs)
        The connectivity from each row of A to each row of B. Non-finite
        values are set to zero.
    comment : str
        The comment prefix of the method (e.g. ``'PLV: '``).
    freq_info : dict
        The frequencies of the estimate (``'freqs'``), the definition of
        the frequency bands (``'freq_bands'``) and, for time-resolved
        methods, the time vector (``'times'``).

    Notes
    -----
    The following methods are supported:

    * %(corr)s
    * %(cohere)s
    * %(granger)s
    * %(spgranger)s
    * %(aec)s
    * %(plv)s
    * %(ciplv)s
    * %(wpli)s
    * %(plvt)s
    * %(ciplvt)s
    * %(wplit)s
    * %(pte)s
    * %(henv)s
    """
    if options is None:
        options = ConnectivityOptions()
    elif isinstance(options, dict):
        options = ConnectivityOptions(**options)
    _validate_type(options, ConnectivityOptions, 'options')
    options = options.check_spectral()
    _validate_type(block_a, (SignalBlock, TrialList), 'block_a')
    is_nn = block_b is None
    if is_nn:
        block_b = block_a
    _validate_type(block_b, (SignalBlock, TrialList), 'block_b')

    est = get_estimator(options)
    if not est.accepts_trials and (isinstance(block_a, TrialList) or
                                   isinstance(block_b, TrialList)):
        raise UnsupportedCombinationError(
            f'Method "{options.method}" cannot process separate trials, '
            'only the coherence can.')
    if est.phase and (block_a.is_unconstrained or block_b.is_unconstrained):
        raise UnsupportedCombinationError(
            'The PLV measures are not supported yet on unconstrained '
            'sources.')

    n_a, n_b = _n_rows(block_a), _n_rows(block_b)
    logger.info(f'    {est.describe(n_a, n_b)}')
    conn, comment, freq_info = est.compute(block_a, block_b, is_nn, n_trials)

    # Replace any NaN or infinite values with zeros
    conn = np.array(conn)
    conn[~np.isfinite(conn)] = 0
    n_freqs = conn.shape[-1]
    return conn.reshape(n_a, n_b, -1, n_freqs), comment, freq_info
