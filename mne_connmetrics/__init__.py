"""Pairwise connectivity between the signals of MEG, EEG and source data."""

# Authors: Adam Li <ali39@jhu.edu>
#          Eric Larson <larson.eric.d@gmail.com>
#          Britta Westner <britta.wstnr@gmail.com>
#          The mne-connmetrics developers
#
# License: BSD (3-clause)

from ._version import __version__  # noqa: F401
from .base import ConnectivityResult, LazyTrials, SignalBlock, TrialList
from .bands import DEFAULT_BANDS, average_bands, parse_bands
from .connectivity import NetCDFSaver, compute_connectivity
from .correlation import correlation
from .engine import compute
from .envelope import amplitude_envelope_correlation, envelope_connectivity
from .errors import (ConfigurationError, DegenerateEstimateError,
                     ShapeMismatchError, UnsupportedCombinationError)
from .io import read_connectivity
from .loading import BlockLoader, LoadOptions, SignalLoader
from .options import ConnectivityOptions
from .phase import ciplv, plv, wpli
from .progress import (LoggerProgress, NullProgress, ProgressEvent,
                       ProgressSink, RecordingProgress, TqdmProgress)
from .pte import phase_transfer_entropy
from .scouts import Scout
from .spectral import cross_spectral_coherence
from .vector_ar import granger_causality, spectral_granger_causality
