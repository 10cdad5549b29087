# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import numpy as np


def _normr(data):
    """Scale the rows to unit norm, zero rows become constant unit rows."""
    norms = np.sqrt(np.sum(np.abs(data) ** 2, axis=1))
    out = np.empty_like(data, dtype=np.result_type(data, np.float64))
    nonzero = norms > 0
    out[nonzero] = data[nonzero] / norms[nonzero, np.newaxis]
    out[~nonzero] = 1. / np.sqrt(data.shape[1])
    return out


def correlation(data_a, data_b=None, remove_mean=True):
    """Correlate every row of ``data_a`` with every row of ``data_b``.

    Parameters
    ----------
    data_a : np.ndarray, shape (n_a, n_times)
        The source signals.
    data_b : np.ndarray, shape (n_b, n_times) | None
        The target signals. If None, ``data_a`` is correlated with itself.
    remove_mean : bool
        Whether to remove the mean of each row first. If False, the result
        is the cosine similarity of the rows.

    Returns
    -------
    corr : np.ndarray, shape (n_a, n_b)
        The correlation coefficients.

    Notes
    -----
    A row with zero norm is replaced by the constant row ``1 / sqrt(n)``
    before the product, so constant signals yield finite values.
    """
    data_a = np.asarray(data_a, dtype=np.float64)
    if remove_mean:
        data_a = data_a - data_a.mean(axis=1, keepdims=True)
    x = _normr(data_a)
    if data_b is None:
        y = x
    else:
        data_b = np.asarray(data_b, dtype=np.float64)
        if data_b.shape[1] != data_a.shape[1]:
            raise ValueError('Both signal sets must have the same number of '
                             f'time samples, got {data_a.shape[1]} and '
                             f'{data_b.shape[1]}.')
        if remove_mean:
            data_b = data_b - data_b.mean(axis=1, keepdims=True)
        y = _normr(data_b)
    return x @ y.T


def correlate_rows(x, y):
    """Correlate each row of ``x`` with the matching row of ``y``.

    The two arrays are broadcast against each other along the rows.

    Parameters
    ----------
    x, y : np.ndarray, shape (n_rows, n_times) | (1, n_times)
        The signals.

    Returns
    -------
    corr : np.ndarray, shape (n_rows,)
        The row-wise correlation coefficients.
    """
    x = x - x.mean(axis=-1, keepdims=True)
    y = y - y.mean(axis=-1, keepdims=True)
    num = np.sum(x * y, axis=-1)
    with np.errstate(invalid='ignore', divide='ignore'):
        return num / np.sqrt(np.sum(x * x, axis=-1) * np.sum(y * y, axis=-1))
