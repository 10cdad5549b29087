# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

from collections import namedtuple

import numpy as np
from mne.utils import _check_option

from .errors import ConfigurationError

METHODS = ('corr', 'cohere', 'granger', 'spgranger', 'aec', 'plv', 'plvt',
           'ciplv', 'ciplvt', 'wpli', 'wplit', 'pte', 'henv')

# methods whose estimate of A -> B equals the estimate of B -> A
SYMMETRIC_METHODS = ('corr', 'cohere', 'plv', 'plvt', 'ciplv', 'ciplvt',
                     'wpli', 'wplit', 'aec', 'henv')

# methods working on the instantaneous phase of band-passed signals
PHASE_METHODS = ('plv', 'plvt', 'ciplv', 'ciplvt', 'wpli', 'wplit')

# methods returning one estimate per time sample (or time window)
TIME_RESOLVED_METHODS = ('plvt', 'ciplvt', 'wplit', 'henv')

SCOUT_FUNCS = ('mean', 'max', 'pca', 'std', 'all', 'median')
COH_MEASURES = ('mscohere', 'icohere2019', 'lcohere2019', 'icohere')
HENV_MEASURES = ('coh', 'lcoh', 'penv', 'oenv')
OUTPUT_MODES = ('input', 'concat', 'avg', 'avgcoh')

_DEFAULTS = dict(
    method='corr',
    process_name='',
    target_a=None,
    target_b=None,
    freqs=0,
    time_window=None,
    ignore_bad=False,
    scout_func='all',
    scout_time='before',
    remove_mean=True,
    coh_measure='mscohere',
    win_len=None,
    max_freq_res=None,
    max_freq=None,
    coh_overlap=0.50,
    granger_order=10,
    granger_dir='out',
    remove_evoked=False,
    is_mirror=True,
    plv_measure='magnitude',
    is_orth=False,
    is_normalized=False,
    tf_measure='hilbert',
    win_length=None,
    win_overlap=0.50,
    henv_measure='coh',
    morlet_fc=1.,
    morlet_fwhm_tc=3.,
    is_symmetric=None,
    p_thresh=0.05,
    output_mode='input',
    output_study=None,
    is_save=True,
)


class ConnectivityOptions(namedtuple('ConnectivityOptions', _DEFAULTS)):
    """Options of a connectivity computation.

    The record is immutable and validated on creation: use
    :meth:`replace` to derive a modified copy.

    Parameters
    ----------
    method : str
        One of ``'corr'``, ``'cohere'``, ``'granger'``, ``'spgranger'``,
        ``'aec'``, ``'plv'``, ``'plvt'``, ``'ciplv'``, ``'ciplvt'``,
        ``'wpli'``, ``'wplit'``, ``'pte'`` or ``'henv'``.
    process_name : str
        The name of the calling process, stored in the history of the
        results.
    target_a, target_b : None | str | list of int | list of Scout
        The rows to keep in the source and target files: comma-separated
        row names, row indices or scouts.
    freqs : None | 0 | array-like | list of tuple
        The frequency bands (see :func:`mne_connmetrics.bands.get_bounds`).
    time_window : None | tuple of float
        The time window to load, in seconds.
    ignore_bad : bool
        Whether to drop the rows marked as bad.
    scout_func : str
        The scout function (``'mean'``, ``'max'``, ``'pca'``, ``'std'``,
        ``'all'`` or ``'median'``).
    scout_time : 'before' | 'after'
        Whether scouts are aggregated before or after the estimation.
    remove_mean : bool
        Remove the mean of the signals before correlating them.
    coh_measure : str
        The coherence measure (``'mscohere'``, ``'icohere2019'``,
        ``'lcohere2019'`` or ``'icohere'``).
    win_len : float | None
        The length of the coherence windows, in seconds. If ``None``, the
        window length is derived from ``max_freq_res``.
    max_freq_res : float | None
        The maximum frequency resolution, in Hz.
    max_freq : float | None
        The highest frequency to keep, in Hz.
    coh_overlap : float
        The overlap of the coherence windows, as a fraction in [0, 1).
    granger_order : int
        The order of the autoregressive models.
    granger_dir : 'out' | 'in'
        The direction of the Granger causality when A is a single row.
    remove_evoked : bool
        Subtract the average over the inputs from each input.
    is_mirror : bool
        Pad the signals by mirroring them before filtering.
    plv_measure : 'magnitude' | 'none'
        Keep the absolute value of the PLV or its complex value.
    is_orth : bool
        Orthogonalize the signals before computing the AEC.
    is_normalized : bool
        Return the normalized phase transfer entropy.
    tf_measure : 'hilbert' | 'morlet'
        The time-frequency transform of the ``'henv'`` method.
    win_length : float | None
        The length of the ``'henv'`` windows, in seconds. If ``None``, the
        whole signal is a single window.
    win_overlap : float
        The overlap of the ``'henv'`` windows, as a fraction in [0, 1).
    henv_measure : str
        The ``'henv'`` measure (``'coh'``, ``'lcoh'``, ``'penv'`` or
        ``'oenv'``).
    morlet_fc : float
        The central frequency of the Morlet mother wavelet, in Hz.
    morlet_fwhm_tc : float
        The temporal full width at half maximum of the mother wavelet.
    is_symmetric : bool | None
        Store symmetric results as lower triangles. If ``None``, decided
        from the method and the inputs.
    p_thresh : float
        Significance threshold stored with the results.
    output_mode : 'input' | 'concat' | 'avg' | 'avgcoh'
        How multiple inputs are combined.
    output_study : str | None
        Where to save the results.
    is_save : bool
        Whether to save the results.
    """

    __slots__ = ()

    def __new__(cls, **kwargs):
        unknown = set(kwargs) - set(cls._fields)
        if unknown:
            raise ConfigurationError(
                f'Unknown connectivity option(s): {sorted(unknown)}')
        params = dict(_DEFAULTS)
        params.update(kwargs)
        self = super().__new__(cls, **params)
        self._validate()
        return self

    def __repr__(self) -> str:
        changed = ['%s=%r' % (key, val) for key, val in self._asdict().items()
                   if key != 'method' and _differs(val, _DEFAULTS[key])]
        r = f'<ConnectivityOptions | {self.method}'
        if changed:
            r += ', ' + ', '.join(changed)
        return r + '>'

    def __getnewargs_ex__(self):
        return (), self._asdict()

    def replace(self, **kwargs):
        """Get a validated copy of the options with new values.

        Parameters
        ----------
        **kwargs : dict
            The options to change.

        Returns
        -------
        options : instance of ConnectivityOptions
            The new options.
        """
        params = self._asdict()
        params.update(kwargs)
        return ConnectivityOptions(**params)

    def _validate(self):
        if self.method not in METHODS:
            raise ConfigurationError(
                f'Invalid connectivity method "{self.method}", it should be '
                f'one of {", ".join(METHODS)}.')
        for name, allowed in (('scout_func', SCOUT_FUNCS),
                              ('scout_time', ('before', 'after')),
                              ('coh_measure', COH_MEASURES),
                              ('granger_dir', ('out', 'in')),
                              ('plv_measure', ('magnitude', 'none')),
                              ('tf_measure', ('hilbert', 'morlet')),
                              ('henv_measure', HENV_MEASURES),
                              ('output_mode', OUTPUT_MODES)):
            try:
                _check_option(name, getattr(self, name), allowed)
            except ValueError as exp:
                raise ConfigurationError(str(exp)) from None

        if self.is_symmetric and self.method not in SYMMETRIC_METHODS:
            raise ConfigurationError(
                f'Method "{self.method}" is not symmetric, the results '
                'cannot be stored as symmetric matrices.')
        if self.output_mode == 'avgcoh':
            if self.method != 'cohere':
                raise ConfigurationError(
                    'Averaging the cross-spectra (output_mode="avgcoh") is '
                    f'only available for coherence, not "{self.method}".')
            if self.remove_evoked:
                raise ConfigurationError(
                    'The evoked response cannot be removed when averaging '
                    'the cross-spectra (output_mode="avgcoh").')
        if self.scout_func == 'pca' and self.scout_time == 'after':
            raise ConfigurationError(
                'The PCA scout function can only be applied before the '
                'connectivity estimation (scout_time="before").')
        if int(self.granger_order) < 1:
            raise ConfigurationError('The Granger model order must be a '
                                     f'positive integer, got '
                                     f'{self.granger_order}.')
        for name in ('coh_overlap', 'win_overlap'):
            if not 0 <= getattr(self, name) < 1:
                raise ConfigurationError(
                    f'{name} must be in [0, 1), got {getattr(self, name)}.')
        if self.time_window is not None and len(self.time_window) != 2:
            raise ConfigurationError('The time window must be a pair '
                                     '(tmin, tmax), got '
                                     f'{self.time_window!r}.')

    def check_spectral(self):
        """Check the frequencies of the spectral and time-frequency methods.

        Returns
        -------
        options : instance of ConnectivityOptions
            The options, where ``max_freq_res`` is filled from ``win_len``
            for spectral Granger causality.
        """
        if self.method == 'henv' and self.tf_measure == 'morlet':
            try:
                freqs = np.atleast_1d(np.asarray(self.freqs, dtype=float))
            except (TypeError, ValueError):
                freqs = np.array([])
            if freqs.ndim != 1 or freqs.size == 0 or (freqs <= 0).any():
                raise ConfigurationError(
                    'Morlet wavelets need a vector of positive frequencies, '
                    f'got {self.freqs!r}.')
            return self
        if self.method not in ('cohere', 'spgranger'):
            return self
        has_res = (self.max_freq_res is not None and
                   not _is_empty(self.max_freq_res) and
                   self.max_freq_res > 0)
        has_win = self.win_len is not None and not _is_empty(self.win_len)
        if not has_res and not has_win:
            raise ConfigurationError('Invalid frequency resolution.')
        if self.method == 'spgranger' and not has_res:
            if self.win_len <= 0:
                raise ConfigurationError('Invalid frequency resolution.')
            return self.replace(max_freq_res=1. / self.win_len)
        return self

    def resolve_symmetric(self, files_a, files_b):
        """Decide whether the results are symmetric.

        Parameters
        ----------
        files_a : list
            The source inputs.
        files_b : list | None
            The target inputs.

        Returns
        -------
        options : instance of ConnectivityOptions
            The options with ``is_symmetric`` set to a bool.
        """
        if self.is_symmetric is not None:
            return self
        is_symmetric = self.method in SYMMETRIC_METHODS and (
            not files_b or (_same_refs(files_a, files_b) and
                            self.target_a == self.target_b))
        return self.replace(is_symmetric=bool(is_symmetric))


def _is_empty(val):
    try:
        return len(val) == 0
    except TypeError:
        return False


def _differs(val, default):
    try:
        return bool(val != default)
    except ValueError:  # arrays
        return True


def _same_refs(files_a, files_b):
    if len(files_a) != len(files_b):
        return False
    return all(a is b or (isinstance(a, str) and a == b)
               for a, b in zip(files_a, files_b))
