# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import numpy as np
from mne.utils import logger

from .base import LazyTrials, SignalBlock, TrialList
from .errors import ConfigurationError, ShapeMismatchError


def concatenate_blocks(blocks):
    """Join signal blocks end to end.

    The time vector of each block is shifted to start one sample after the
    end of the previous block.

    Parameters
    ----------
    blocks : list of SignalBlock
        The blocks, with the same rows.

    Returns
    -------
    block : SignalBlock
        The concatenated block, with the metadata of the first block.
    """
    first = blocks[0]
    data, times = [first.data], [first.times]
    for block in blocks[1:]:
        if block.data.shape[0] != first.data.shape[0]:
            raise ShapeMismatchError(
                'Cannot concatenate blocks with different numbers of rows: '
                f'{first.data.shape[0]} and {block.data.shape[0]}.')
        dt = block.times[1] - block.times[0]
        times.append(block.times - block.times[0] + dt + times[-1][-1])
        data.append(block.data)
    return first.copy(data=np.concatenate(data, axis=1),
                      times=np.concatenate(times))


class OnlineAverage:
    """Running average of arrays, each pre-scaled by ``1 / n_total``.

    Parameters
    ----------
    n_total : int
        The number of arrays that will be folded.
    what : str
        What is averaged, used in the error messages.
    """

    def __init__(self, n_total, what='inputs'):
        self.n_total = n_total
        self.what = what
        self.n_folded = 0
        self.value = None

    def __repr__(self) -> str:
        return f'<OnlineAverage | {self.n_folded}/{self.n_total} {self.what}>'

    def add(self, data):
        """Fold one array into the average."""
        if self.value is None:
            self.value = data / self.n_total
        elif self.value.shape != data.shape:
            raise ShapeMismatchError(
                f'Cannot average {self.what} of different dimensions: '
                f'{self.value.shape} and {data.shape}.')
        else:
            self.value = self.value + data / self.n_total
        self.n_folded += 1


def load_all(loader, file_refs, target, time_window, load_options,
             concat=False, remove_evoked=False):
    """Load several inputs, concatenate them and/or compute their average.

    Parameters
    ----------
    loader : SignalLoader
        The loader.
    file_refs : list
        The inputs.
    target : object
        The row target.
    time_window : None | tuple of float
        The time window.
    load_options : LoadOptions
        The loading options.
    concat : bool
        Whether to concatenate the inputs.
    remove_evoked : bool
        Whether to compute the average of the inputs. With ``concat``, the
        average is subtracted from each concatenated segment.

    Returns
    -------
    concatenated : SignalBlock | None
        The concatenated inputs, or None if ``concat`` is False.
    average : SignalBlock | None
        The average of the inputs, or None if ``remove_evoked`` is False.
    """
    blocks = list()
    average = OnlineAverage(len(file_refs), 'input files')
    template = None
    for file_ref in file_refs:
        block = loader.load(file_ref, target, time_window, load_options)
        if template is None:
            template = block
        if concat:
            blocks.append(block)
        if remove_evoked:
            average.add(block.data)
    logger.info(f'    Loaded {len(file_refs)} input files')

    average_block = None
    if remove_evoked:
        average_block = template.copy(data=average.value)
    concatenated = None
    if concat:
        if remove_evoked:
            blocks = [block.copy(data=block.data - average.value)
                      for block in blocks]
        concatenated = concatenate_blocks(blocks)
    return concatenated, average_block


def lazy_trials(loader, file_refs, target, time_window, load_options):
    """Prepare the inputs as trials loaded on demand.

    The first input is loaded right away to get the metadata of the trials.

    Returns
    -------
    trials : TrialList
        The trials, backed by a :class:`LazyTrials` sequence.
    """
    template = loader.load(file_refs[0], target, time_window, load_options)
    if template.n_times < 2:
        raise ConfigurationError('Invalid time selection, check the input '
                                 'time window.')

    def load(file_ref):
        block = loader.load(file_ref, target, time_window, load_options)
        if block.data.shape != template.data.shape:
            raise ShapeMismatchError(
                f'Trial {file_ref!r} has shape {block.data.shape}, expected '
                f'{template.data.shape}.')
        return block

    return TrialList(template, LazyTrials(load, file_refs))


def subtract_average(block, average):
    """Remove the average of the inputs from one input."""
    if average is None:
        return block
    if not isinstance(block, SignalBlock) or \
            block.data.shape != average.data.shape:
        raise ShapeMismatchError(
            'The input and the average of the inputs have different '
            'dimensions.')
    return block.copy(data=block.data - average.data)
