# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

from collections import namedtuple
from collections.abc import Mapping

import numpy as np
from mne.utils import logger, verbose

from .base import SignalBlock
from .errors import ConfigurationError
from .scouts import extract_scout_signals, is_scout_target

LoadOptions = namedtuple(
    'LoadOptions', ['ignore_bad', 'target_func', 'load_full', 'process_name'])
LoadOptions.__new__.__defaults__ = (False, 'all', True, '')


def make_load_options(options, target):
    """Build the loading options of one side of the connectivity.

    Parameters
    ----------
    options : ConnectivityOptions
        The connectivity options.
    target : object
        The row target of this side.

    Returns
    -------
    load_options : LoadOptions
        The loading options.
    """
    target_func = options.scout_func if options.scout_time == 'before' \
        else 'all'
    # kernel-based sources stay factorized for coherence only
    load_full = (target is not None and not _is_empty(target)) or \
        options.method != 'cohere'
    return LoadOptions(ignore_bad=options.ignore_bad, target_func=target_func,
                       load_full=load_full,
                       process_name=options.process_name)


def _is_empty(val):
    try:
        return len(val) == 0
    except TypeError:
        return False


class SignalLoader:
    """Base class of the signal loaders.

    Subclasses read one input and return it as a :class:`SignalBlock`.
    """

    def load(self, file_ref, target, time_window, load_options):
        """Load one input.

        Parameters
        ----------
        file_ref : object
            The reference of the input.
        target : None | str | list of int | list of Scout
            The rows to keep.
        time_window : None | tuple of float
            The time window, in seconds.
        load_options : LoadOptions
            The loading options.

        Returns
        -------
        block : SignalBlock
            The loaded signals.
        """
        raise NotImplementedError('load method should be implemented in a '
                                  'subclass.')


class BlockLoader(SignalLoader):
    """Load signals from blocks held in memory.

    Parameters
    ----------
    blocks : Mapping | None
        The blocks, keyed by file reference. If None, the file references
        must be :class:`SignalBlock` instances.
    """

    def __init__(self, blocks=None):
        if blocks is not None and not isinstance(blocks, Mapping):
            raise TypeError('blocks must be a mapping of file references to '
                            f'SignalBlock, got {type(blocks)}')
        self.blocks = blocks

    def __repr__(self) -> str:
        n_blocks = 0 if self.blocks is None else len(self.blocks)
        return f'<BlockLoader | {n_blocks} blocks>'

    def _get_block(self, file_ref):
        if isinstance(file_ref, SignalBlock):
            return file_ref
        if self.blocks is None or file_ref not in self.blocks:
            raise ConfigurationError(f'Unknown input file: {file_ref!r}')
        return self.blocks[file_ref]

    @verbose
    def load(self, file_ref, target=None, time_window=None,
             load_options=None, verbose=None):
        if load_options is None:
            load_options = LoadOptions()
        block = self._get_block(file_ref)
        logger.debug(f'    Loading {block!r}')

        # time selection
        times = block.times
        if time_window is not None:
            tmin, tmax = time_window
            tol = 0.5 / block.sfreq if block.n_times > 1 else 0.
            mask = np.ones(len(times), bool)
            if tmin is not None:
                mask &= times >= tmin - tol
            if tmax is not None:
                mask &= times <= tmax + tol
        else:
            mask = slice(None)
        data = block.data[:, mask]
        times = times[mask]
        if data.shape[1] < 2:
            raise ConfigurationError('Invalid time selection, check the '
                                     'input time window.')

        kernel = block.imaging_kernel
        row_names = block.row_names
        data_type = block.data_type
        n_components = block.n_components
        bad_rows = block.bad_rows
        if load_options.load_full and kernel is not None:
            data, kernel = kernel @ data, None

        # row selection
        if is_scout_target(target):
            if kernel is not None:
                data, kernel = kernel @ data, None
            data, row_names = extract_scout_signals(
                data, target, load_options.target_func, n_components)
            data_type = 'scouts'
            bad_rows = []
        elif target is not None and not _is_empty(target):
            picks = self._pick_rows(block, target)
            if kernel is not None:
                kernel = kernel[picks]
            else:
                data = data[picks]
            row_names = [row_names[pick] for pick in picks]
            if block.is_unconstrained:
                # individual orientations are no longer grouped
                n_components = 1
            bad_rows = [name for name in bad_rows if name in row_names]

        if load_options.ignore_bad and bad_rows:
            keep = [ri for ri, name in enumerate(row_names)
                    if name not in bad_rows]
            if kernel is not None:
                kernel = kernel[keep]
            else:
                data = data[keep]
            row_names = [row_names[ri] for ri in keep]
            bad_rows = []

        return block.copy(data=data, times=times, imaging_kernel=kernel,
                          row_names=row_names, data_type=data_type,
                          n_components=n_components, bad_rows=bad_rows)

    @staticmethod
    def _pick_rows(block, target):
        if isinstance(target, str):
            names = [name.strip() for name in target.split(',')
                     if name.strip()]
            missing = [name for name in names if name not in block.row_names]
            if missing:
                raise ConfigurationError(
                    f'Rows not found in {block!r}: {missing}')
            return [block.row_names.index(name) for name in names]
        picks = np.atleast_1d(np.asarray(target, dtype=int))
        if picks.min() < 0 or picks.max() >= block.n_rows:
            raise ConfigurationError(
                f'Row indices out of range for {block.n_rows} rows: '
                f'{picks.tolist()}')
        return picks.tolist()
