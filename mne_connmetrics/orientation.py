# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import re

import numpy as np
from mne.utils import _check_option

from .errors import ShapeMismatchError


def _location_name(name):
    return re.sub(r'\.\d+$', '', str(name))


def reduce_orientations(data, n_components, func, row_names=None):
    """Collapse the orientations of unconstrained sources on the first axis.

    Parameters
    ----------
    data : np.ndarray, shape (n_rows, ...)
        The connectivity, with ``n_components`` consecutive rows per source
        location.
    n_components : int
        The number of orientations per location.
    func : 'absmax' | 'max'
        ``'absmax'`` keeps the signed value of largest magnitude, ``'max'``
        the largest value.
    row_names : list of str | None
        The names of the rows.

    Returns
    -------
    data : np.ndarray, shape (n_rows // n_components, ...)
        The connectivity of each location.
    row_names : list of str | None
        One name per location, without the orientation suffix.
    """
    _check_option('func', func, ('absmax', 'max'))
    n_rows = data.shape[0]
    if n_rows % n_components:
        raise ShapeMismatchError(
            f'{n_rows} rows cannot be grouped by {n_components} '
            'orientations.')
    grouped = data.reshape((n_rows // n_components, n_components) +
                           data.shape[1:])
    if func == 'max':
        out = grouped.max(axis=1)
    else:
        idx = np.abs(grouped).argmax(axis=1)
        out = np.take_along_axis(grouped, idx[:, np.newaxis], axis=1)[:, 0]
    if row_names is not None:
        row_names = [_location_name(name)
                     for name in list(row_names)[::n_components]]
    return out, row_names


def reduce_connectivity_orientations(conn, block_a, block_b):
    """Collapse unconstrained orientations on both axes of a connectivity.

    Parameters
    ----------
    conn : np.ndarray, shape (n_a, n_b, n_times, n_freqs)
        The connectivity.
    block_a, block_b : SignalBlock
        The source and target blocks.

    Returns
    -------
    conn : np.ndarray
        The connectivity between locations.
    names_a, names_b : list of str
        The names of the source and target locations.
    """
    names_a, names_b = block_a.row_names, block_b.row_names
    if not (block_a.is_unconstrained or block_b.is_unconstrained):
        return conn, names_a, names_b
    # negative values: keep the sign of the strongest orientation
    func = 'absmax' if np.any(np.real(conn) < 0) else 'max'
    if block_a.is_unconstrained:
        conn, names_a = reduce_orientations(conn, block_a.n_components,
                                            func, names_a)
    if block_b.is_unconstrained:
        conn, names_b = reduce_orientations(conn.swapaxes(0, 1),
                                            block_b.n_components, func,
                                            names_b)
        conn = conn.swapaxes(0, 1)
    return conn, names_a, names_b
