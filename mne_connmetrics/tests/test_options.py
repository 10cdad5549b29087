# Authors: The mne-connmetrics developers
#
# License: BSD (3-clause)

import pickle

import pytest

from mne_connmetrics import ConfigurationError, ConnectivityOptions


def test_options_defaults():
    """Test the default options."""
    options = ConnectivityOptions()
    assert options.method == 'corr'
    assert options.output_mode == 'input'
    assert options.coh_overlap == 0.5
    assert options.is_symmetric is None
    assert repr(options) == '<ConnectivityOptions | corr>'
    options = ConnectivityOptions(method='plv', plv_measure='none')
    assert repr(options) == "<ConnectivityOptions | plv, plv_measure='none'>"


@pytest.mark.parametrize('kwargs, match', [
    (dict(method='foo'), 'Invalid connectivity method'),
    (dict(foo=1), 'Unknown connectivity option'),
    (dict(coh_measure='cohere'), 'Invalid value'),
    (dict(scout_time='during'), 'Invalid value'),
    (dict(output_mode='sum'), 'Invalid value'),
    (dict(method='granger', is_symmetric=True), 'is not symmetric'),
    (dict(method='corr', output_mode='avgcoh'), 'only available for'),
    (dict(method='cohere', output_mode='avgcoh', remove_evoked=True),
     'evoked response cannot be removed'),
    (dict(scout_func='pca', scout_time='after'), 'PCA scout function'),
    (dict(method='granger', granger_order=0), 'positive integer'),
    (dict(coh_overlap=1.), 'coh_overlap must be'),
    (dict(win_overlap=-0.1), 'win_overlap must be'),
    (dict(time_window=(0., 1., 2.)), 'time window must be a pair'),
])
def test_options_validation(kwargs, match):
    """Test that invalid options are rejected on creation."""
    with pytest.raises(ConfigurationError, match=match):
        ConnectivityOptions(**kwargs)


def test_options_replace_and_pickle():
    """Test that options are immutable records."""
    options = ConnectivityOptions(method='cohere', max_freq_res=1.)
    new = options.replace(coh_measure='icohere2019')
    assert new.coh_measure == 'icohere2019'
    assert options.coh_measure == 'mscohere'
    with pytest.raises(AttributeError):
        options.method = 'corr'
    with pytest.raises(ConfigurationError, match='Invalid value'):
        options.replace(coh_measure='foo')
    assert pickle.loads(pickle.dumps(new)) == new


def test_check_spectral():
    """Test the frequency resolution of the spectral methods."""
    options = ConnectivityOptions(method='cohere')
    with pytest.raises(ConfigurationError,
                       match='Invalid frequency resolution'):
        options.check_spectral()
    options = ConnectivityOptions(method='cohere', max_freq_res=0.)
    with pytest.raises(ConfigurationError,
                       match='Invalid frequency resolution'):
        options.check_spectral()
    options = ConnectivityOptions(method='cohere', win_len=1.)
    assert options.check_spectral() is options

    # spectral Granger: the resolution is derived from the window length
    options = ConnectivityOptions(method='spgranger', win_len=0.5)
    assert options.check_spectral().max_freq_res == 2.
    options = ConnectivityOptions(method='spgranger', max_freq_res=1.,
                                  win_len=0.5)
    assert options.check_spectral().max_freq_res == 1.

    # other methods do not need any resolution
    options = ConnectivityOptions(method='plv')
    assert options.check_spectral() is options


def test_resolve_symmetric():
    """Test the decision to store symmetric results."""
    options = ConnectivityOptions(method='corr')
    assert options.resolve_symmetric(['a'], None).is_symmetric is True
    assert options.resolve_symmetric(['a'], []).is_symmetric is True
    assert options.resolve_symmetric(['a'], ['a']).is_symmetric is True
    assert options.resolve_symmetric(['a'], ['b']).is_symmetric is False
    options = ConnectivityOptions(method='corr', target_a='1',
                                  target_b='2')
    assert options.resolve_symmetric(['a'], ['a']).is_symmetric is False
    options = ConnectivityOptions(method='granger')
    assert options.resolve_symmetric(['a'], None).is_symmetric is False
    options = ConnectivityOptions(method='corr', is_symmetric=False)
    assert options.resolve_symmetric(['a'], None).is_symmetric is False


def test_check_morlet_frequencies():
    """Test that the wavelet frequencies are checked up front."""
    options = ConnectivityOptions(method='henv', tf_measure='morlet')
    with pytest.raises(ConfigurationError, match='positive frequencies'):
        options.check_spectral()
    with pytest.raises(ConfigurationError, match='positive frequencies'):
        options.replace(freqs=[0., 10.]).check_spectral()
    with pytest.raises(ConfigurationError, match='positive frequencies'):
        options.replace(freqs=[('alpha', '8, 12', 'mean')]).check_spectral()
    options = options.replace(freqs=[8., 10., 12.])
    assert options.check_spectral() is options
    # the bands of the Hilbert transform are not wavelet frequencies
    options = ConnectivityOptions(method='henv',
                                  freqs=[('alpha', '8, 12', 'mean')])
    assert options.check_spectral() is options
