# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import os
import os.path as op

from mne.utils import _validate_type, logger, verbose

from .aggregate import (OnlineAverage, lazy_trials, load_all,
                        subtract_average)
from .base import ConnectivityResult, SignalBlock, TrialList
from .engine import compute, get_estimator
from .errors import ConfigurationError, ShapeMismatchError
from .loading import BlockLoader, SignalLoader, make_load_options
from .options import ConnectivityOptions
from .orientation import reduce_connectivity_orientations
from .packaging import build_comment, make_result, reconcile_comments
from .progress import (NullProgress, ProgressSink, forward_warnings,
                       make_event)
from .utils import fill_doc


class NetCDFSaver:
    """Save connectivity results as netCDF files in a directory.

    Parameters
    ----------
    directory : str | pathlib.Path
        The output directory. Results of an output study are saved in the
        sub-directory of that name.
    """

    def __init__(self, directory):
        self.directory = str(directory)

    def __repr__(self) -> str:
        return f'<NetCDFSaver | {self.directory}>'

    def save(self, result, output_study=None):
        """Save one result.

        Parameters
        ----------
        result : ConnectivityResult
            The result.
        output_study : str | None
            The sub-directory.

        Returns
        -------
        fname : str
            The path of the new file.
        """
        _validate_type(result, ConnectivityResult, 'result')
        directory = self.directory
        if output_study is not None:
            directory = op.join(directory, str(output_study))
        os.makedirs(directory, exist_ok=True)
        tag = 'connect1' if len(result.ref_row_names) == 1 else 'connectn'
        base = f'timefreq_{tag}_{result.method}'
        fname = op.join(directory, base + '.nc')
        count = 2
        while op.exists(fname):
            fname = op.join(directory, '%s_%02d.nc' % (base, count))
            count += 1
        result.save(fname)
        logger.info(f'    Saved {fname}')
        return fname


def _as_file_list(files):
    if files is None:
        return []
    if isinstance(files, (str, SignalBlock)):
        return [files]
    return list(files)


def _check_atlas(block, options):
    """Atlas-based inputs: one row per scout, scouts only before."""
    atlas = block.atlas
    if atlas and len(atlas.get('scouts', [])) == block.n_rows:
        return block.copy(data_type='matrix'), options.replace(
            scout_time='before')
    return block, options


def _template(block):
    return block.template if isinstance(block, TrialList) else block


@verbose
@fill_doc
def compute_connectivity(files_a, files_b=None, options=None, loader=None,
                         progress=None, saver=None, verbose=None):
    """Compute the connectivity between the rows of input files.

    Parameters
    ----------
    files_a : list
        The source inputs, as file references understood by ``loader``.
    files_b : list | None
        The target inputs. If None or empty, the sources are connected with
        themselves (N x N connectivity). Otherwise, there must be as many
        targets as sources.
    %(options)s
    %(loader)s
    %(progress)s
    saver : object | None
        An object with a ``save(result, output_study)`` method returning a
        reference to the saved result, e.g. :class:`NetCDFSaver`. Used when
        ``options.is_save`` is True.
    %(verbose)s

    Returns
    -------
    outputs : list
        One item per result: the references returned by ``saver``, or the
        :class:`ConnectivityResult` instances if nothing is saved. The
        ``'input'`` output mode produces one result per input, the other
        modes a single result.

    Notes
    -----
    The output modes are:

    ``'input'``
        One connectivity estimate per input (or pair of inputs).
    ``'avg'``
        The estimates of all the inputs are averaged.
    ``'concat'``
        The inputs are concatenated in time before a single estimate.
    ``'avgcoh'``
        The cross-spectra of all the inputs are averaged (coherence only).
        The inputs are loaded one at a time.

    With ``remove_evoked``, the average of the inputs is subtracted from
    each input first.
    """
    if options is None:
        options = ConnectivityOptions()
    elif isinstance(options, dict):
        options = ConnectivityOptions(**options)
    _validate_type(options, ConnectivityOptions, 'options')
    if loader is None:
        loader = BlockLoader()
    _validate_type(loader, SignalLoader, 'loader')
    if progress is None:
        progress = NullProgress()
    _validate_type(progress, ProgressSink, 'progress')

    files_a = _as_file_list(files_a)
    files_b = _as_file_list(files_b)
    if not files_a:
        raise ConfigurationError('No input file.')
    is_nn = not files_b
    if not is_nn and len(files_b) != len(files_a):
        raise ConfigurationError(
            f'Got {len(files_a)} source files and {len(files_b)} target '
            'files, there must be as many.')

    # a single file: no concatenation and no average removal
    if len(files_a) == 1:
        options = options.replace(output_mode='input', remove_evoked=False)
    if options.max_freq == 0:
        options = options.replace(max_freq=None)
    options = options.check_spectral()
    options = options.resolve_symmetric(files_a, files_b)
    logger.info(f'Connectivity: {options!r}')

    load_options_a = make_load_options(options, options.target_a)
    load_options_b = make_load_options(options, options.target_b)
    mode = options.output_mode
    n_files = len(files_a)
    n_trials = 1
    average_a = average_b = None
    block_a = block_b = None

    if mode == 'avgcoh':
        n_trials = n_files
        block_a = lazy_trials(loader, files_a, options.target_a,
                              options.time_window, load_options_a)
        if not is_nn:
            block_b = lazy_trials(loader, files_b, options.target_b,
                                  options.time_window, load_options_b)
    elif mode == 'concat':
        progress.report(make_event('text', 'Loading input files...'))
        n_trials = n_files
        block_a, _ = load_all(loader, files_a, options.target_a,
                              options.time_window, load_options_a,
                              concat=True,
                              remove_evoked=options.remove_evoked)
        if not is_nn:
            block_b, _ = load_all(loader, files_b, options.target_b,
                                  options.time_window, load_options_b,
                                  concat=True,
                                  remove_evoked=options.remove_evoked)
            if block_a.n_times != block_b.n_times:
                raise ShapeMismatchError('Files A and B must have the same '
                                         'number of time samples.')
    elif options.remove_evoked:
        _, average_a = load_all(loader, files_a, options.target_a,
                                options.time_window, load_options_a,
                                remove_evoked=True)
        if not is_nn:
            _, average_b = load_all(loader, files_b, options.target_b,
                                    options.time_window, load_options_b,
                                    remove_evoked=True)

    outputs = list()
    running = OnlineAverage(n_files, 'connectivity estimates')
    comments = list()
    n_iter = n_files if mode in ('input', 'avg') else 1
    n_times_first = None
    for ii in range(n_iter):
        progress.report(make_event('set', value=100. * ii / n_iter))
        if mode in ('input', 'avg'):
            progress.report(make_event('text', 'Loading input files...'))
            block_a = loader.load(files_a[ii], options.target_a,
                                  options.time_window, load_options_a)
            if block_a.n_times < 2:
                raise ConfigurationError('Invalid time selection, check the '
                                         'input time window.')
            block_a, options = _check_atlas(block_a, options)
            if mode == 'avg':
                if n_times_first is None:
                    n_times_first = block_a.n_times
                elif block_a.n_times != n_times_first:
                    raise ShapeMismatchError(
                        'Invalid time selection, probably due to different '
                        'time vectors in the input files.')
            block_a = subtract_average(block_a, average_a)
            if not is_nn:
                block_b = loader.load(files_b[ii], options.target_b,
                                      options.time_window, load_options_b)
                if block_b.n_times < 2:
                    raise ConfigurationError('Invalid time selection, check '
                                             'the input time window.')
                block_b, options = _check_atlas(block_b, options)
                if block_a.n_times != block_b.n_times:
                    raise ShapeMismatchError('Files A and B must have the '
                                             'same number of time samples.')
                block_b = subtract_average(block_b, average_b)

        template_a = _template(block_a)
        template_b = template_a if is_nn else _template(block_b)
        est = get_estimator(options)
        progress.report(make_event(
            'text', est.describe(template_a.n_rows, template_b.n_rows)))
        with forward_warnings(progress):
            conn, prefix, freq_info = compute(
                block_a, None if is_nn else block_b, options,
                n_trials=n_trials)
        if 'n_windows' in freq_info and 'n_win_samples' in freq_info:
            progress.report(make_event(
                'info', 'Using %d windows of %d samples each'
                % (freq_info['n_windows'], freq_info['n_win_samples'])))

        conn, names_a, names_b = reduce_connectivity_orientations(
            conn, template_a, template_b)
        comment = build_comment(prefix, template_a, names_a, options, is_nn)

        if mode == 'avg':
            comments.append(comment)
            running.add(conn)
            continue
        progress.report(make_event('text', 'Saving results...'))
        result = make_result(conn, comment, freq_info, template_a,
                             template_b, options, names_a, names_b,
                             n_avg=1, n_trials=n_trials)
        outputs.append(_emit(result, options, saver))

    if mode == 'avg':
        progress.report(make_event('text', 'Saving results...'))
        result = make_result(
            running.value, reconcile_comments(comments, running.n_folded),
            freq_info, template_a, template_b, options, names_a, names_b,
            n_avg=running.n_folded, n_trials=n_trials)
        outputs.append(_emit(result, options, saver))
    progress.report(make_event('set', value=100.))
    return outputs


def _emit(result, options, saver):
    if options.is_save and saver is not None:
        return saver.save(result, options.output_study)
    return result
