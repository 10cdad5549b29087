# -*- coding: utf-8 -*-
# Author: Adam Li <adam2392@gmail.com>
#         The mne-connmetrics developers
#
# License: BSD-3-Clause

import numpy as np
import pytest

from mne_connmetrics import SignalBlock


def pytest_configure(config):
    """Configure pytest options."""
    warning_lines = r"""
    ignore:.*`np.bool` is a deprecated alias.*:DeprecationWarning
    ignore:.*String decoding changed with h5py.*:FutureWarning
    ignore:.*SelectableGroups dict interface is deprecated.*:DeprecationWarning
    ignore:.*distutils Version classes are deprecated.*:DeprecationWarning
    ignore:.*You are writing invalid netcdf features to file.*:UserWarning
    ignore:.*invalid value encountered.*:RuntimeWarning
    ignore:.*divide by zero encountered.*:RuntimeWarning
    always::ResourceWarning
    """  # noqa: E501
    for warning_line in warning_lines.split('\n'):
        warning_line = warning_line.strip()
        if warning_line and not warning_line.startswith('#'):
            config.addinivalue_line('filterwarnings', warning_line)


@pytest.fixture
def make_block():
    """Build random signal blocks sampled at 100 Hz."""
    def _make_block(n_rows=3, n_times=500, seed=0, sfreq=100., tmin=0.,
                    **kwargs):
        rng = np.random.RandomState(seed)
        data = rng.randn(n_rows, n_times)
        times = tmin + np.arange(n_times) / sfreq
        return SignalBlock(data, times, **kwargs)
    return _make_block
