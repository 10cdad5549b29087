"""The documentation functions."""
# Authors: Eric Larson <larson.eric.d@gmail.com>
#          The mne-connmetrics developers
#
# License: BSD (3-clause)

from mne.utils.docs import _indentcount_lines


##############################################################################
# Define our standard documentation entries

docdict = dict()

# Signal blocks
docdict["block_a"] = """
block_a : SignalBlock | TrialList
    The source block. Every row of this block is connected to every row
    of ``block_b``. A :class:`TrialList` is only accepted by the coherence
    estimator, which needs each trial separately.
"""

docdict["block_b"] = """
block_b : SignalBlock | TrialList | None
    The target block. If ``None`` (default), the source block is connected
    with itself (N x N connectivity).
"""

docdict["options"] = """
options : ConnectivityOptions | dict | None
    The connectivity options. A dict is converted with
    ``ConnectivityOptions(**options)``. If ``None``, the defaults are used.
"""

docdict["row_names"] = """
row_names : list of str | None
    The names of the rows of the block. If ``None`` (default), rows are
    named by their index.
"""

docdict["n_components"] = """
n_components : int | None
    The number of orientation components per location. ``1`` (or ``None``)
    for scalar rows, ``3`` for unconstrained (vector-valued) sources. Must
    evenly divide the number of rows.
"""

docdict["freqs_spec"] = """
freqs : None | 0 | array-like, shape (n_bands, 2) | list of tuple
    The frequency specification. ``None`` or ``0`` means the full spectrum.
    A list of ``(name, bounds, func)`` tuples, where ``bounds`` is a string
    such as ``'8, 12'`` or a pair of numbers, defines named bands. A numeric
    ``(n_bands, 2)`` array defines anonymous bands.
"""

docdict["sfreq"] = """
sfreq : float
    The sampling frequency in Hz.
"""

docdict["is_mirror"] = """
is_mirror : bool
    Whether to pad the signals by mirroring them before filtering
    (default True). If False, the signals are padded with zeros.
"""

# Methods
docdict["corr"] = "'corr' : Pearson correlation"
docdict["cohere"] = "'cohere' : Coherence (see ``coh_measure``)"
docdict["granger"] = "'granger' : Time-domain Granger causality"
docdict["spgranger"] = "'spgranger' : Spectral Granger causality"
docdict["aec"] = "'aec' : Amplitude envelope correlation (legacy)"
docdict["plv"] = "'plv' : Phase-Locking Value (PLV)"
docdict["ciplv"] = "'ciplv' : Corrected Imaginary PLV (ciPLV)"
docdict["wpli"] = "'wpli' : Weighted Phase Lag Index (wPLI)"
docdict["plvt"] = "'plvt' : Time-resolved PLV"
docdict["ciplvt"] = "'ciplvt' : Time-resolved ciPLV"
docdict["wplit"] = "'wplit' : Time-resolved wPLI"
docdict["pte"] = "'pte' : Phase Transfer Entropy (PTE)"
docdict["henv"] = "'henv' : Windowed envelope/coherence connectivity"

# Downstream container variables
docdict["data"] = """
data : np.ndarray, shape (n_estimated_nodes, n_times, n_freqs)
    The connectivity data as a raveled array. ``n_estimated_nodes`` is equal
    to ``n_sources * n_targets`` for full storage, or to
    ``n * (n + 1) / 2`` for symmetric storage.
"""

docdict["freqs"] = """
freqs : list | np.ndarray
    The frequencies at which the connectivity data is computed over.
    If the frequencies are "frequency bands" (e.g. alpha), then these
    are the names of the bands.
"""

docdict["times"] = """
times : list | np.ndarray
    The time vector of the connectivity data. Either one time point per
    sample/window for time-resolved methods, or the first and last time of
    the analysed segment.
"""

docdict["method"] = """
method : str
    The method name used to compute connectivity.
"""

docdict["n_avg"] = """
n_avg : int
    The number of files folded into the connectivity data (default 1).
"""

# Collaborators
docdict["loader"] = """
loader : SignalLoader | None
    The object used to load the input files. If ``None`` (default), the
    inputs must be :class:`SignalBlock` instances and a :class:`BlockLoader`
    is used.
"""

docdict["progress"] = """
progress : ProgressSink | None
    Receives the progress events of the computation. If ``None`` (default),
    progress is not reported.
"""

# Verbose
docdict["verbose"] = """
verbose : bool, str, int, or None
    If not None, override default verbose level (see :func:`mne.verbose`
    for more info). If used, it should be passed as a
    keyword-argument only."""


docdict_indented = dict()  # type: ignore


def fill_doc(f):
    """Fill a docstring with docdict entries.

    Parameters
    ----------
    f : callable
        The function to fill the docstring of. Will be modified in place.

    Returns
    -------
    f : callable
        The function, potentially with an updated ``__doc__``.
    """
    docstring = f.__doc__
    if not docstring:
        return f
    lines = docstring.splitlines()
    # Find the minimum indent of the main docstring, after first line
    if len(lines) < 2:
        icount = 0
    else:
        icount = _indentcount_lines(lines[1:])
    # Insert this indent to dictionary docstrings
    try:
        indented = docdict_indented[icount]
    except KeyError:
        indent = " " * icount
        docdict_indented[icount] = indented = {}
        for name, dstr in docdict.items():
            lines = dstr.splitlines()
            try:
                newlines = [lines[0]]
                for line in lines[1:]:
                    newlines.append(indent + line)
                indented[name] = "\n".join(newlines)
            except IndexError:
                indented[name] = dstr
    try:
        f.__doc__ = docstring % indented
    except (TypeError, ValueError, KeyError) as exp:
        funcname = f.__name__
        funcname = docstring.split("\n")[0] if funcname is None else funcname
        raise RuntimeError(f"Error documenting {funcname}:\n{str(exp)}")
    return f
