# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import warnings
from collections import namedtuple
from contextlib import contextmanager

from mne.utils import _check_option, logger
from tqdm import tqdm

ProgressEvent = namedtuple('ProgressEvent', ['kind', 'message', 'value'])
ProgressEvent.__new__.__defaults__ = ('', None)

EVENT_KINDS = ('text', 'set', 'info', 'warning')


def make_event(kind, message='', value=None):
    """Create a progress event.

    Parameters
    ----------
    kind : 'text' | 'set' | 'info' | 'warning'
        ``'text'`` describes the current step, ``'set'`` reports the
        completion in percent (``value``), ``'info'`` and ``'warning'`` are
        report entries about the current input.
    message : str
        The message.
    value : float | None
        The completion, in percent.

    Returns
    -------
    event : ProgressEvent
        The event.
    """
    _check_option('kind', kind, EVENT_KINDS)
    return ProgressEvent(kind, message, value)


@contextmanager
def forward_warnings(progress):
    """Report the warnings raised in the block as progress events.

    The warnings are emitted again when the block exits, so that they
    still reach the warning filters of the caller.

    Parameters
    ----------
    progress : instance of ProgressSink
        The sink receiving the ``'warning'`` events.
    """
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always')
        yield
    for w in caught:
        progress.report(make_event('warning', str(w.message)))
        warnings.warn_explicit(w.message, w.category, w.filename, w.lineno)


class ProgressSink:
    """Receive the progress events of a computation."""

    def report(self, event):
        raise NotImplementedError('report method should be implemented in a '
                                  'subclass.')

    def close(self):
        pass


class NullProgress(ProgressSink):
    """Discard all the events."""

    def report(self, event):
        pass


class LoggerProgress(ProgressSink):
    """Log the events with the MNE logger."""

    def report(self, event):
        if event.kind == 'set':
            logger.debug(f'    Progress: {event.value:.0f}%')
        elif event.kind == 'warning':
            logger.warning(event.message)
        else:
            logger.info(f'    {event.message}')


class TqdmProgress(ProgressSink):
    """Show the completion in a progress bar.

    Parameters
    ----------
    **kwargs : dict
        Passed to :class:`tqdm.tqdm`.
    """

    def __init__(self, **kwargs):
        kwargs.setdefault('total', 100)
        kwargs.setdefault('leave', False)
        self._bar = tqdm(**kwargs)

    def report(self, event):
        if event.kind == 'set':
            self._bar.update(max(event.value - self._bar.n, 0))
        elif event.kind == 'text':
            self._bar.set_description(event.message)
        else:
            self._bar.write(event.message)

    def close(self):
        self._bar.close()


class RecordingProgress(ProgressSink):
    """Keep all the events in a list."""

    def __init__(self):
        self.events = list()

    def report(self, event):
        self.events.append(event)
