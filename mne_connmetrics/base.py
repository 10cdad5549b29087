# Authors: Adam Li <adam2392@gmail.com>
#          The mne-connmetrics developers
#
# License: BSD (3-clause)

from copy import deepcopy

import numpy as np
import pandas as pd
import xarray as xr
from mne.utils import _check_option, _validate_type, object_size, sizeof_fmt

from .errors import ShapeMismatchError
from .utils import (fill_doc, compress_sym, decompress_sym,
                    _prepare_xarray_attrs)

DATA_TYPES = ('data', 'results', 'scouts', 'matrix')


@fill_doc
class SignalBlock:
    """A loaded multichannel time-series segment.

    Parameters
    ----------
    data : np.ndarray, shape (n_rows, n_times)
        The signals, real or complex. If ``imaging_kernel`` is given, these
        are the sensor signals the kernel applies to.
    times : array-like, shape (n_times,)
        The monotonic time vector, in seconds.
    data_type : 'data' | 'results' | 'scouts' | 'matrix'
        The kind of signals: raw recordings, source estimates, scout
        time series or a generic matrix.
    %(n_components)s
    %(row_names)s
    comment : str
        A short description of the block, used in the result comments.
    atlas : dict | None
        The atlas the rows belong to, with keys ``'name'`` and ``'scouts'``.
    imaging_kernel : np.ndarray, shape (n_rows, n_sensors) | None
        The inverse kernel that maps ``data`` to the actual rows.
    **kwargs : dict
        Extra descriptors kept along the block (e.g. ``surface_file``,
        ``grid_loc``, ``grid_atlas``, ``head_model_file``,
        ``bad_rows``).
    """

    def __init__(self, data, times, data_type='data', n_components=None,
                 row_names=None, comment='', atlas=None, imaging_kernel=None,
                 **kwargs):
        _check_option('data_type', data_type, DATA_TYPES)
        data = np.asarray(data)
        if data.ndim != 2:
            raise ValueError('The data of a signal block must be 2D '
                             f'(n_rows, n_times), got shape {data.shape}.')
        times = np.asarray(times, dtype=float)
        if times.ndim != 1 or len(times) != data.shape[1]:
            raise ShapeMismatchError(
                f'The time vector has {times.size} points but the data has '
                f'{data.shape[1]} time samples.')
        if imaging_kernel is not None:
            imaging_kernel = np.asarray(imaging_kernel)
            if imaging_kernel.shape[1] != data.shape[0]:
                raise ShapeMismatchError(
                    f'The imaging kernel expects {imaging_kernel.shape[1]} '
                    f'sensors but the data has {data.shape[0]} rows.')
        self.data = data
        self.times = times
        self.data_type = data_type
        self.imaging_kernel = imaging_kernel

        n_rows = self.n_rows
        if n_components is not None:
            n_components = int(n_components)
            if n_components < 1 or n_rows % n_components:
                raise ShapeMismatchError(
                    f'n_components={n_components} does not evenly divide the '
                    f'{n_rows} rows of the block.')
        self.n_components = n_components

        if row_names is None:
            row_names = list(map(str, range(n_rows)))
        row_names = list(row_names)
        if len(row_names) != n_rows:
            raise ShapeMismatchError(
                f'Got {len(row_names)} row names for {n_rows} rows.')
        self.row_names = row_names
        self.comment = comment
        self.atlas = atlas
        self.surface_file = kwargs.pop('surface_file', None)
        self.grid_loc = kwargs.pop('grid_loc', None)
        self.grid_atlas = kwargs.pop('grid_atlas', None)
        self.head_model_file = kwargs.pop('head_model_file', None)
        self.head_model_type = kwargs.pop('head_model_type', None)
        self.file_ref = kwargs.pop('file_ref', None)
        self.bad_rows = list(kwargs.pop('bad_rows', None) or [])
        if kwargs:
            raise TypeError('Unexpected keyword arguments for SignalBlock: '
                            f'{sorted(kwargs)}')

    def __repr__(self) -> str:
        r = f'<{self.__class__.__name__} | {self.data_type}, '
        r += f'{self.n_rows} rows x {self.n_times} times'
        if self.n_times > 1:
            r += ', t : [%f, %f]' % (self.times[0], self.times[-1])
        if self.is_unconstrained:
            r += f', {self.n_components} orientations'
        if self.imaging_kernel is not None:
            r += ', kernel'
        r += '>'
        return r

    @property
    def n_rows(self):
        """The number of rows (after kernel projection)."""
        if self.imaging_kernel is not None:
            return self.imaging_kernel.shape[0]
        return self.data.shape[0]

    @property
    def n_times(self):
        """The number of time samples."""
        return self.data.shape[1]

    @property
    def sfreq(self):
        """The sampling frequency, rounded at 1e-6 Hz."""
        if self.n_times < 2:
            raise ValueError('At least two time samples are needed to get '
                             'the sampling frequency.')
        sfreq = 1. / (self.times[1] - self.times[0])
        return round(sfreq * 1e6) * 1e-6

    @property
    def is_unconstrained(self):
        """Whether the rows are vector-valued source orientations."""
        return (self.data_type in ('results', 'scouts', 'matrix') and
                self.n_components is not None and self.n_components != 1)

    def get_data(self):
        """Get the row signals, applying the imaging kernel if any.

        Returns
        -------
        data : np.ndarray, shape (n_rows, n_times)
            The signals.
        """
        if self.imaging_kernel is not None:
            return self.imaging_kernel @ self.data
        return self.data

    def copy(self, **kwargs):
        """Copy the block, replacing some of its attributes.

        Parameters
        ----------
        **kwargs : dict
            Attributes to replace, e.g. ``data`` and ``times``.

        Returns
        -------
        block : instance of SignalBlock
            The new block.
        """
        params = dict(
            data=self.data, times=self.times, data_type=self.data_type,
            n_components=self.n_components, row_names=self.row_names,
            comment=self.comment, atlas=self.atlas,
            imaging_kernel=self.imaging_kernel,
            surface_file=self.surface_file, grid_loc=self.grid_loc,
            grid_atlas=self.grid_atlas, head_model_file=self.head_model_file,
            head_model_type=self.head_model_type, file_ref=self.file_ref,
            bad_rows=self.bad_rows)
        params.update(kwargs)
        return SignalBlock(**params)


class LazyTrials:
    """A finite sequence of trials loaded on demand.

    The sequence can be iterated over once: each trial is loaded when it is
    reached, so that only one trial is held in memory by the sequence.

    Parameters
    ----------
    load : callable
        Called with one file reference, returns a :class:`SignalBlock`.
    file_refs : list
        The file references, one per trial.
    """

    def __init__(self, load, file_refs):
        self._load = load
        self._file_refs = list(file_refs)
        self._consumed = False

    def __len__(self):
        return len(self._file_refs)

    def __repr__(self) -> str:
        state = 'consumed' if self._consumed else 'pending'
        return f'<LazyTrials | {len(self)} trials, {state}>'

    def __iter__(self):
        if self._consumed:
            raise RuntimeError('The trials have already been loaded once, a '
                               'lazy trial sequence cannot be restarted.')
        self._consumed = True
        return self._generate()

    def _generate(self):
        for file_ref in self._file_refs:
            yield self._load(file_ref)


class TrialList:
    """Several trials analysed together but kept separate.

    Parameters
    ----------
    template : SignalBlock
        A block holding the metadata common to all trials (rows, names,
        sampling, kernel). Its time vector spans all the trials.
    trials : list of np.ndarray | LazyTrials
        The trials, either as arrays of shape (n_rows, n_times) or as a lazy
        sequence of :class:`SignalBlock`.
    """

    def __init__(self, template, trials):
        _validate_type(template, SignalBlock, 'template')
        self.template = template
        self.trials = trials

    def __repr__(self) -> str:
        return (f'<TrialList | {len(self)} trials of '
                f'{self.template.n_rows} rows>')

    def __len__(self):
        return len(self.trials)

    def __iter__(self):
        """Iterate over the trial arrays, shape (n_rows_data, n_times)."""
        for trial in self.trials:
            if isinstance(trial, SignalBlock):
                trial = trial.data
            yield trial

    @property
    def is_lazy(self):
        """Whether the trials are loaded on demand."""
        return isinstance(self.trials, LazyTrials)

    def __getattr__(self, name):
        # metadata is shared with the template block
        if name in ('template', 'trials'):
            raise AttributeError(name)
        return getattr(self.template, name)


@fill_doc
class ConnectivityResult:
    """Connectivity between the rows of two signal blocks.

    The underlying data structure is an ``xarray.DataArray`` with dimensions
    ``('node_in -> node_out', 'times', 'freqs')``. The first dimension is
    the raveled ``(n_sources, n_targets)`` matrix (row-major), or its lower
    triangle when ``indices='symmetric'``.

    Parameters
    ----------
    %(data)s
    %(method)s
    ref_row_names : list of str
        The names of the source rows.
    row_names : list of str
        The names of the target rows.
    %(freqs)s
    %(times)s
    indices : 'all' | 'symmetric'
        Whether the full matrix or only its lower triangle is stored.
    %(n_avg)s
    comment : str
        A human-readable description of the result.
    **kwargs : dict
        Extra descriptors stored as xarray ``attrs`` (e.g. ``measure``,
        ``data_type``, ``time_bands``, ``freq_bands``, ``options``).
    """

    def __init__(self, data, method, ref_row_names, row_names, freqs=None,
                 times=None, indices='all', n_avg=1, comment='', **kwargs):
        _check_option('indices', indices, ('all', 'symmetric'))
        if not isinstance(data, np.ndarray):
            raise TypeError('Connectivity data must be passed in as a '
                            'numpy array.')
        if data.ndim != 3:
            raise RuntimeError('Connectivity data should have 3 dimensions '
                               '(n_estimated_nodes, n_times, n_freqs). '
                               f'Your data was {data.shape} shape.')
        ref_row_names = list(ref_row_names)
        row_names = list(row_names)
        self._check_data_consistency(data, indices, ref_row_names, row_names)

        if freqs is None:
            freqs = [0.]
        freqs = list(np.asarray(freqs).tolist())
        if len(freqs) != data.shape[2]:
            raise ValueError(f'Got {len(freqs)} frequencies for '
                             f'{data.shape[2]} frequency bins.')
        if times is None:
            times = list(range(data.shape[1]))
        times = list(np.asarray(times, dtype=float).tolist())
        if len(times) == data.shape[1]:
            time_coords = times
        elif data.shape[1] == 1:
            # single time bin spanning the whole analysed segment
            time_coords = times[:1]
        else:
            raise ValueError(f'Got {len(times)} time points for '
                             f'{data.shape[1]} time bins.')

        coords = {
            'node_in -> node_out': list(map(str, range(data.shape[0]))),
            'times': time_coords,
            'freqs': freqs,
        }
        attrs = dict(kwargs)
        attrs.update(method=method, ref_row_names=ref_row_names,
                     row_names=row_names, indices=indices, n_avg=int(n_avg),
                     comment=comment, time_vector=times)
        self._obj = xr.DataArray(
            data=data, coords=coords,
            dims=['node_in -> node_out', 'times', 'freqs'], attrs=attrs)

    def __repr__(self) -> str:
        r = f'<{self.__class__.__name__} | {self.method}, '
        r += f'{len(self.ref_row_names)} x {len(self.row_names)}'
        if self.is_symmetric:
            r += ' (symmetric)'
        r += ', time : [%f, %f]' % (self.times[0], self.times[-1])
        r += f', n_freqs : {len(self.freqs)}'
        r += f', nave : {self.n_avg}'
        r += ', ~%s' % (sizeof_fmt(self._size),)
        r += '>'
        return r

    @staticmethod
    def _check_data_consistency(data, indices, ref_row_names, row_names):
        n_sources, n_targets = len(ref_row_names), len(row_names)
        if indices == 'symmetric':
            if n_sources != n_targets:
                raise ValueError('Symmetric connectivity needs as many '
                                 f'sources ({n_sources}) as targets '
                                 f'({n_targets}).')
            expected_len = (n_sources + 1) * n_sources // 2
        else:
            expected_len = n_sources * n_targets
        if data.shape[0] != expected_len:
            raise ValueError(
                f'The connectivity data has {data.shape[0]} estimated '
                f'connections, but there should be {expected_len} for '
                f'{n_sources} sources and {n_targets} targets '
                f'(indices="{indices}").')

    def copy(self):
        return deepcopy(self)

    @property
    def xarray(self):
        """Xarray of the connectivity data."""
        return self._obj

    @property
    def _data(self):
        """Numpy array of connectivity data."""
        return self.xarray.values

    @property
    def dims(self):
        """The dimensions of the xarray data."""
        return self.xarray.dims

    @property
    def coords(self):
        """The coordinates of the xarray data."""
        return self.xarray.coords

    @property
    def attrs(self):
        """Xarray attributes of connectivity.

        See ``xarray``'s ``attrs``.
        """
        return self.xarray.attrs

    @property
    def shape(self):
        """Shape of raveled connectivity."""
        return self.xarray.shape

    @property
    def method(self):
        """The method used to compute connectivity."""
        return self.attrs['method']

    @property
    def comment(self):
        return self.attrs['comment']

    @property
    def n_avg(self):
        """The number of files averaged in the connectivity data."""
        return self.attrs['n_avg']

    @property
    def indices(self):
        """Either 'all' or 'symmetric'."""
        return self.attrs['indices']

    @property
    def is_symmetric(self):
        return self.indices == 'symmetric'

    @property
    def ref_row_names(self):
        """The names of the source rows."""
        return self.attrs['ref_row_names']

    @property
    def row_names(self):
        """The names of the target rows."""
        return self.attrs['row_names']

    @property
    def names(self):
        """Source and target row names."""
        return self.ref_row_names, self.row_names

    @property
    def freqs(self):
        """The frequency bins, or the names of the frequency bands."""
        return self.xarray.coords.get('freqs').values.tolist()

    @property
    def times(self):
        """The time vector (per sample, per window, or first/last time)."""
        return self.attrs['time_vector']

    @property
    def _size(self):
        """Estimate the object size."""
        size = 0
        size += object_size(self._data)
        size += object_size(self.attrs)
        return size

    def get_data(self, output='compact'):
        """Get connectivity data as a numpy array.

        Parameters
        ----------
        output : str, optional
            How to format the output. If 'raveled', the data are returned as
            stored, shape ``(n_estimated_nodes, n_times, n_freqs)``. If
            'dense' (or 'compact', the default), the data are returned with
            shape ``(n_sources, n_targets, n_times, n_freqs)``, rebuilding
            the full matrix if only its lower triangle was stored.

        Returns
        -------
        data : np.ndarray
            The output connectivity data.
        """
        _check_option('output', output, ['raveled', 'dense', 'compact'])
        if output == 'raveled':
            return self._data
        data = self._data
        if self.is_symmetric:
            data = decompress_sym(data)
        new_shape = [len(self.ref_row_names), len(self.row_names)]
        new_shape.extend(data.shape[1:])
        return data.reshape(new_shape)

    def compress(self):
        """Store only the lower triangle of a symmetric result.

        Returns
        -------
        self : instance of ConnectivityResult
            The result, modified in place.
        """
        if self.is_symmetric:
            return self
        if self.ref_row_names != self.row_names:
            raise ValueError('Only results with identical source and target '
                             'rows can be stored as symmetric matrices.')
        attrs = dict(self.attrs)
        time_vector = attrs.pop('time_vector')
        for key in ('method', 'ref_row_names', 'row_names', 'indices',
                    'n_avg', 'comment'):
            attrs.pop(key)
        new = ConnectivityResult(
            compress_sym(self._data), self.method, self.ref_row_names,
            self.row_names, freqs=self.freqs, times=time_vector,
            indices='symmetric', n_avg=self.n_avg, comment=self.comment,
            **attrs)
        self._obj = new._obj
        return self

    def to_dataframe(self, name='value'):
        """Export the connectivity values as a long table.

        Parameters
        ----------
        name : str
            The name of the value column.

        Returns
        -------
        df : instance of pandas.DataFrame
            One row per (source, target, time, frequency).
        """
        data = self.get_data(output='dense')
        times = self.coords['times'].values
        freqs = self.coords['freqs'].values
        index = pd.MultiIndex.from_product(
            [self.ref_row_names, self.row_names, times, freqs],
            names=['source', 'target', 'times', 'freqs'])
        return pd.DataFrame({name: data.ravel()}, index=index).reset_index()

    def save(self, fname):
        """Save connectivity data to disk.

        Parameters
        ----------
        fname : str | pathlib.Path
            The filepath to save the data. Data is saved
            as netCDF files (``.nc`` extension).
        """
        xarray_obj = self.xarray.copy()
        xarray_obj.attrs = _prepare_xarray_attrs(self.attrs)
        xarray_obj.attrs['data_structure'] = str(self.__class__.__name__)
        # The engine specified requires the ability to save
        # complex data types, which was not natively supported
        # in xarray. Therefore, h5netcdf is the only engine
        # to support that feature at this moment.
        xarray_obj.to_netcdf(fname, mode='w', format='NETCDF4',
                             engine='h5netcdf', invalid_netcdf=True)
