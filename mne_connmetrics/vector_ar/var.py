import numpy as np
from scipy.linalg import lstsq

from ..errors import ShapeMismatchError


def _split_trials(data, n_trials):
    """Split concatenated trials into an array (n_trials, n_signals, n_times).

    Parameters
    ----------
    data : np.ndarray, shape (n_signals, n_trials * n_times)
        The trials, concatenated along time.
    n_trials : int
        The number of trials.

    Returns
    -------
    data : np.ndarray, shape (n_trials, n_signals, n_times)
        The trials, each standardized to zero mean and unit variance.
    """
    n_signals, n_total = data.shape
    if n_total % n_trials:
        raise ShapeMismatchError(
            f'{n_total} time samples cannot be split into {n_trials} trials '
            'of equal length.')
    n_times = n_total // n_trials
    trials = data.reshape(n_signals, n_trials, n_times).transpose(1, 0, 2)
    trials = trials - trials.mean(axis=-1, keepdims=True)
    std = trials.std(axis=-1, keepdims=True)
    std[std == 0] = 1.
    return trials / std


def _construct_var_eqns(data, lags, l2_reg=None):
    """Construct VAR equation system (optionally with RLS constraint).

    This function was originally imported from ``scot``.

    Parameters
    ----------
    data : np.ndarray (n_epochs, n_signals, n_times)
        The multivariate data.
    lags : int
        The order of the VAR model.
    l2_reg : float, optional
        The l2 penalty term for ridge regression, by default None, which
        will result in ordinary VAR equation.

    Returns
    -------
    X : np.ndarray
        The predictor multivariate time-series. This will have shape
        ``(n_epochs * (n_times - lags), n_signals * lags)``. Column
        ``i * lags + k - 1`` holds signal ``i`` delayed by ``k`` samples.
    Y : np.ndarray
        The predicted multivariate time-series. This will have shape
        ``(n_epochs * (n_times - lags), n_signals)``.

    Notes
    -----
    This function will format data such as:

        Y = X A

    where Y is time-shifted data copy of X and ``A`` defines
    how X linearly maps to Y.
    """
    # n_epochs, n_signals, n_times
    n_epochs, n_signals, n_times = np.shape(data)
    if n_times <= lags:
        raise ShapeMismatchError(
            f'Trials of {n_times} samples are too short for a VAR model of '
            f'order {lags}.')

    # number of linear relations
    n = (n_times - lags) * n_epochs
    rows = n if l2_reg is None else n + n_signals * lags

    # Construct matrix X (predictor variables)
    X = np.zeros((rows, n_signals * lags))
    for i in range(n_signals):
        for k in range(1, lags + 1):
            X[:n, i * lags + k -
                1] = np.reshape(data[:, i, lags - k:-k].T, n)

    if l2_reg is not None:
        np.fill_diagonal(X[n:, :], l2_reg)

    # Construct vectors yi (response variables for each channel i)
    Y = np.zeros((rows, n_signals))
    for i in range(n_signals):
        Y[:n, i] = np.reshape(data[:, i, lags:].T, n)

    return X, Y


def _fit_var(data, lags):
    """Least-squares fit of a VAR model.

    Parameters
    ----------
    data : np.ndarray (n_epochs, n_signals, n_times)
        The multivariate data.
    lags : int
        The order of the VAR model.

    Returns
    -------
    coefs : np.ndarray (lags, n_signals, n_signals)
        ``coefs[k - 1, i, j]`` maps signal ``j`` at ``t - k`` to signal ``i``
        at ``t``.
    sigma : np.ndarray (n_signals, n_signals)
        The covariance of the residuals.
    """
    X, Y = _construct_var_eqns(data, lags)
    A = lstsq(X, Y)[0]
    resid = Y - X @ A
    sigma = resid.T @ resid / len(resid)

    n_signals = data.shape[1]
    # rows of A are ordered (signal, lag), columns are the predicted signals
    coefs = A.reshape(n_signals, lags, n_signals).transpose(1, 2, 0)
    return coefs, sigma


def _residual_variance(data, lags):
    """Residual variance of each signal predicted by all the signals.

    Returns
    -------
    var : np.ndarray (n_signals,)
        The mean squared one-step prediction error.
    """
    X, Y = _construct_var_eqns(data, lags)
    A = lstsq(X, Y)[0]
    resid = Y - X @ A
    return np.mean(resid ** 2, axis=0)
