# Authors: Martin Luessi <mluessi@nmr.mgh.harvard.edu>
#          The mne-connmetrics developers
#
# License: BSD (3-clause)
import json

import numpy as np


def _tril_raveled_indices(n_nodes):
    """Get the raveled indices of the lower triangle (diagonal included)."""
    tril_inds = np.tril_indices(n_nodes, k=0)
    return np.ravel_multi_index(tril_inds, dims=(n_nodes, n_nodes))


def compress_sym(data):
    """Keep only the lower-triangular part of raveled symmetric matrices.

    Parameters
    ----------
    data : np.ndarray, shape (n_nodes ** 2, ...)
        The connectivity data, raveled row-major over ``(n_nodes, n_nodes)``.

    Returns
    -------
    data : np.ndarray, shape (n_nodes * (n_nodes + 1) // 2, ...)
        The values on and below the diagonal.
    """
    data = np.asarray(data)
    n_nodes = int(round(np.sqrt(data.shape[0])))
    if n_nodes ** 2 != data.shape[0]:
        raise ValueError('The first dimension of the data must be the square '
                         f'of the number of nodes, got {data.shape[0]}.')
    return data[_tril_raveled_indices(n_nodes), ...]


def decompress_sym(data):
    """Rebuild full raveled matrices from their lower-triangular part.

    Parameters
    ----------
    data : np.ndarray, shape (n_nodes * (n_nodes + 1) // 2, ...)
        The compressed connectivity data, as returned by
        :func:`compress_sym`.

    Returns
    -------
    data : np.ndarray, shape (n_nodes ** 2, ...)
        The symmetric connectivity data, raveled row-major.
    """
    data = np.asarray(data)
    n_tri = data.shape[0]
    n_nodes = int(round((np.sqrt(8 * n_tri + 1) - 1) / 2))
    if n_nodes * (n_nodes + 1) // 2 != n_tri:
        raise ValueError(f'{n_tri} values cannot be the lower-triangular part '
                         'of a square matrix.')
    rows, cols = np.tril_indices(n_nodes, k=0)
    full = np.zeros((n_nodes, n_nodes) + data.shape[1:], dtype=data.dtype)
    full[rows, cols, ...] = data
    full[cols, rows, ...] = data
    return full.reshape((n_nodes ** 2,) + data.shape[1:])


def _prepare_xarray_attrs(attrs):
    """Map connectivity attributes to values netCDF can store.

    netCDF does not support ``None`` or nested containers, so ``None``
    becomes ``'n/a'`` and containers are stored as JSON strings.
    """
    out = dict()
    for key, val in attrs.items():
        if val is None:
            val = 'n/a'
        elif isinstance(val, (dict, list, tuple, np.ndarray)):
            val = 'json:' + json.dumps(val, default=_json_default)
        elif isinstance(val, (bool, np.bool_)):
            val = int(val)
        out[key] = val
    return out


def _restore_xarray_attrs(attrs):
    """Revert :func:`_prepare_xarray_attrs`."""
    out = dict()
    for key, val in attrs.items():
        if isinstance(val, str) and val == 'n/a':
            val = None
        elif isinstance(val, str) and val.startswith('json:'):
            val = json.loads(val[5:])
        elif isinstance(val, np.ndarray):
            val = val.tolist()
        out[key] = val
    return out


def _json_default(obj):
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.generic):
        return obj.item()
    return str(obj)
