# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

from collections import namedtuple

import numpy as np
from mne.utils import _check_option

from .errors import ShapeMismatchError

Scout = namedtuple('Scout', ['label', 'vertices'])
Scout.__doc__ = """A region of interest: a label and the rows (vertices) it
groups."""

SIGNAL_FUNCS = ('mean', 'max', 'pca', 'std', 'all', 'median')
CONN_FUNCS = ('mean', 'max', 'std', 'median')


def is_scout_target(target):
    """Whether a row target is a list of scouts."""
    return (isinstance(target, (list, tuple)) and len(target) > 0 and
            all(isinstance(scout, Scout) for scout in target))


def _signed_max(data, axis):
    """Signed value of largest magnitude along an axis."""
    idx = np.expand_dims(np.abs(data).argmax(axis=axis), axis)
    return np.take_along_axis(data, idx, axis=axis).squeeze(axis)


def _first_component(data):
    """First principal component of rows, shape (n_times,)."""
    centered = data - data.mean(axis=-1, keepdims=True)
    u, s, vh = np.linalg.svd(centered, full_matrices=False)
    pc = vh[0] * s[0] / np.sqrt(len(data))
    # same polarity as the average signal
    if np.dot(pc, data.mean(axis=0)) < 0:
        pc = -pc
    return pc


def _reduce(data, func, axis):
    if func == 'mean':
        return data.mean(axis=axis)
    elif func == 'max':
        return _signed_max(data, axis)
    elif func == 'std':
        return data.std(axis=axis)
    elif func == 'median':
        return np.median(data, axis=axis)
    raise ValueError(f'Invalid scout function "{func}".')


def extract_scout_signals(data, scouts, func, n_components=None):
    """Extract the time series of scouts.

    Parameters
    ----------
    data : np.ndarray, shape (n_vertices * n_components, n_times)
        The source signals.
    scouts : list of Scout
        The scouts. Their vertices index the source locations.
    func : str
        ``'all'`` keeps every row of every scout, the other functions
        (``'mean'``, ``'max'``, ``'pca'``, ``'std'``, ``'median'``) reduce
        each scout to one row per orientation.
    n_components : int | None
        The number of orientations per location.

    Returns
    -------
    data : np.ndarray, shape (n_rows, n_times)
        The scout signals.
    row_names : list of str
        The name of each row.
    """
    _check_option('func', func, SIGNAL_FUNCS)
    n_comp = n_components or 1
    n_loc = data.shape[0] // n_comp
    out, names = list(), list()
    for scout in scouts:
        vertices = np.atleast_1d(np.asarray(scout.vertices, dtype=int))
        if vertices.size == 0 or vertices.max() >= n_loc or \
                vertices.min() < 0:
            raise ShapeMismatchError(
                f'Scout "{scout.label}" references vertices outside of the '
                f'{n_loc} source locations.')
        # (n_vertices, n_components, n_times)
        rows = data.reshape(n_loc, n_comp, -1)[vertices]
        suffixes = [''] if n_comp == 1 else \
            [f'.{ci + 1}' for ci in range(n_comp)]
        if func == 'all':
            out.append(rows.reshape(-1, rows.shape[-1]))
            names.extend(f'{scout.label}.{vertex}{suffix}'
                         for vertex in vertices for suffix in suffixes)
            continue
        if func == 'pca':
            reduced = np.array([_first_component(rows[:, ci])
                                for ci in range(n_comp)])
        else:
            reduced = _reduce(rows, func, axis=0)
        out.append(reduced)
        names.extend(f'{scout.label}{suffix}' for suffix in suffixes)
    return np.concatenate(out, axis=0), names


def _scout_groups(scouts, n_rows):
    sizes = [len(np.atleast_1d(scout.vertices)) for scout in scouts]
    if sum(sizes) != n_rows:
        raise ShapeMismatchError(
            f'The scouts group {sum(sizes)} rows, but the connectivity has '
            f'{n_rows} rows.')
    bounds = np.cumsum([0] + sizes)
    return [slice(start, stop) for start, stop in zip(bounds[:-1],
                                                      bounds[1:])]


def aggregate_scouts(conn, func, scouts_a=None, scouts_b=None):
    """Aggregate connectivity over the rows of scouts.

    Parameters
    ----------
    conn : np.ndarray, shape (n_a, n_b, ...)
        The connectivity between all the rows of the scouts.
    func : 'mean' | 'max' | 'std' | 'median'
        The aggregation function.
    scouts_a, scouts_b : list of Scout | None
        The scouts of the sources and targets. Rows are assumed to follow
        the scout order, ``len(scout.vertices)`` consecutive rows each.

    Returns
    -------
    conn : np.ndarray, shape (n_scouts_a, n_scouts_b, ...)
        The connectivity between scouts.
    names_a, names_b : list of str | None
        The scout labels, or None on an axis without scouts.
    """
    _check_option('func', func, CONN_FUNCS)
    names_a = names_b = None
    if scouts_a:
        conn = np.stack([_reduce(conn[sl], func, axis=0)
                         for sl in _scout_groups(scouts_a, conn.shape[0])])
        names_a = [scout.label for scout in scouts_a]
    if scouts_b:
        conn = np.stack([_reduce(conn[:, sl], func, axis=1)
                         for sl in _scout_groups(scouts_b, conn.shape[1])],
                        axis=1)
        names_b = [scout.label for scout in scouts_b]
    return conn, names_a, names_b
