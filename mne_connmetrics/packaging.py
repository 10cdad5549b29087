# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import re
from datetime import datetime

import numpy as np
from mne.utils import logger

from .bands import average_bands, is_full_spectrum
from .base import ConnectivityResult
from .options import PHASE_METHODS, TIME_RESOLVED_METHODS
from .scouts import aggregate_scouts, is_scout_target

_TRIAL_TAG = re.compile(r'\(#.+\)')


def _row_label(name):
    name = str(name)
    return '#' + name if name.isdigit() else name


def build_comment(prefix, block_a, names_a, options, is_nn):
    """Build the comment of one connectivity estimate.

    Parameters
    ----------
    prefix : str
        The comment prefix of the method (e.g. ``'Corr: '``).
    block_a : SignalBlock
        The source block.
    names_a : list of str
        The source row names, after orientation reduction.
    options : ConnectivityOptions
        The connectivity options.
    is_nn : bool
        Whether the sources are connected with themselves.

    Returns
    -------
    comment : str
        The comment.
    """
    comment = prefix
    if is_nn:
        return comment + (block_a.comment or '')
    scouts_a = options.target_a if is_scout_target(options.target_a) \
        else None
    scouts_b = options.target_b if is_scout_target(options.target_b) \
        else None
    if scouts_a:
        if len(scouts_a) == 1:
            comment += scouts_a[0].label
    elif len(names_a) == 1:
        comment += _row_label(names_a[0])
    if scouts_b:
        comment += f' x {len(scouts_b)} scouts'
    if options.scout_func != 'all' and (scouts_a or scouts_b):
        comment += f', {options.scout_func} {options.scout_time}'
    return comment


def reconcile_comments(comments, n_avg):
    """Get the comment of an average of estimates.

    If the comments differ, the trial tags ``(#...)`` are removed first. If
    they still differ, the last comment is kept.

    Parameters
    ----------
    comments : list of str
        The comments of the averaged estimates.
    n_avg : int
        The number of averaged estimates.

    Returns
    -------
    comment : str
        ``'Avg: <comment> (<n_avg>)'``.
    """
    comments = list(comments)
    if len(set(comments)) > 1:
        comments = [_TRIAL_TAG.sub('', comment).rstrip()
                    for comment in comments]
    comment = comments[0] if len(set(comments)) == 1 else comments[-1]
    return 'Avg: %s (%d)' % (comment, n_avg)


def time_axis(method, freq_info, block_b):
    """Get the time vector and time bands of a connectivity.

    Returns
    -------
    times : np.ndarray
        One time per sample or window for time-resolved methods, otherwise
        the first and last time of the target block.
    time_bands : list | None
        ``[[method, tmin, tmax]]`` for methods returning one value over the
        whole segment.
    """
    if method in TIME_RESOLVED_METHODS:
        return np.asarray(freq_info.get('times', block_b.times)), None
    times = block_b.times[[0, -1]]
    return times, [[method, float(times[0]), float(times[1])]]


def _atlas_info(options, block_b):
    scouts_b = options.target_b if is_scout_target(options.target_b) \
        else None
    if scouts_b:
        name = options.process_name
        if block_b.atlas is not None and block_b.atlas.get('name'):
            name = block_b.atlas['name']
        return dict(name=name, scouts=[[scout.label, list(
            np.atleast_1d(scout.vertices).tolist())] for scout in scouts_b])
    return block_b.atlas


def _options_snapshot(options):
    snapshot = options._asdict()
    for key in ('target_a', 'target_b'):
        if is_scout_target(snapshot[key]):
            snapshot[key] = [scout.label for scout in snapshot[key]]
    return snapshot


def make_result(conn, comment, freq_info, block_a, block_b, options,
                names_a, names_b, n_avg=1, n_trials=1):
    """Package a connectivity estimate.

    Parameters
    ----------
    conn : np.ndarray, shape (n_a, n_b, n_times, n_freqs)
        The connectivity.
    comment : str
        The comment of the result.
    freq_info : dict
        The frequency information returned by the engine.
    block_a, block_b : SignalBlock
        The source and target blocks (templates of trial lists).
    options : ConnectivityOptions
        The connectivity options.
    names_a, names_b : list of str
        The source and target row names.
    n_avg : int
        The number of averaged estimates.
    n_trials : int
        The number of trials the estimate was computed on.

    Returns
    -------
    result : ConnectivityResult
        The packaged result.
    """
    method = options.method
    times, time_bands = time_axis(method, freq_info, block_b)

    measure = 'other'
    if method in PHASE_METHODS:
        if options.plv_measure == 'magnitude':
            conn = np.abs(conn)
        else:
            measure = 'none'

    freqs = freq_info.get('freqs')
    freq_bands = freq_info.get('freq_bands')
    if method in ('cohere', 'spgranger') and \
            not is_full_spectrum(options.freqs):
        logger.info('    Averaging the frequency bins in bands')
        conn, freqs, bounds = average_bands(conn, freqs, options.freqs)
        freq_bands = [[name, float(low), float(high)]
                      for name, (low, high) in zip(freqs, bounds)]

    scouts_a = options.target_a if is_scout_target(options.target_a) \
        else None
    scouts_b = options.target_b if is_scout_target(options.target_b) \
        else None
    if (scouts_a or scouts_b) and options.scout_time == 'after' and \
            options.scout_func != 'all':
        conn, new_a, new_b = aggregate_scouts(conn, options.scout_func,
                                              scouts_a, scouts_b)
        names_a = new_a if new_a is not None else names_a
        names_b = new_b if new_b is not None else names_b

    n_a, n_b = conn.shape[:2]
    history = [[datetime.now().strftime('%d-%b-%Y %H:%M:%S'), 'compute',
                f'Connectivity measure: {method} (see the field "options" '
                'for input parameters)']]
    head_model = block_a if block_a.head_model_file else block_b
    result = ConnectivityResult(
        conn.reshape(n_a * n_b, conn.shape[2], conn.shape[3]), method,
        names_a, names_b, freqs=freqs, times=times, n_avg=n_avg,
        comment=comment, n_trials=n_trials, measure=measure,
        data_type=block_b.data_type, time_bands=time_bands,
        freq_bands=freq_bands, options=_options_snapshot(options),
        atlas=_atlas_info(options, block_b),
        surface_file=block_b.surface_file, grid_loc=block_b.grid_loc,
        grid_atlas=block_b.grid_atlas,
        head_model_file=head_model.head_model_file,
        head_model_type=head_model.head_model_type, history=history)

    # keep the values on and below the diagonal
    if options.is_symmetric and n_a == n_b and \
            list(names_a) == list(names_b):
        result.compress()
    return result
