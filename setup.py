#! /usr/bin/env python
"""Pairwise connectivity between multichannel signals with MNE."""

import codecs
import os

from setuptools import find_packages, setup

# get the version from _version.py
version = None
with open(os.path.join('mne_connmetrics', '_version.py'), 'r') as fid:
    for line in (line.strip() for line in fid):
        if line.startswith('__version__'):
            version = line.split('=')[1].strip().strip('\'')
            break
if version is None:
    raise RuntimeError('Could not determine version')

DISTNAME = 'mne-connmetrics'
DESCRIPTION = 'Pairwise connectivity between multichannel signals with MNE.'
with codecs.open('README.rst', encoding='utf-8-sig') as f:
    LONG_DESCRIPTION = f.read()
MAINTAINER = 'The mne-connmetrics developers'
MAINTAINER_EMAIL = 'mne_connmetrics@googlegroups.com'
URL = 'https://github.com/mne-tools/mne-connmetrics'
LICENSE = 'BSD-3'
DOWNLOAD_URL = 'https://github.com/mne-tools/mne-connmetrics'
VERSION = version
INSTALL_REQUIRES = ['numpy>=1.20', 'scipy', 'mne', 'xarray', 'h5netcdf[h5py]',
                    'pandas', 'tqdm']
CLASSIFIERS = ['Intended Audience :: Science/Research',
               'Intended Audience :: Developers',
               'License :: OSI Approved',
               'Programming Language :: Python',
               'Topic :: Software Development',
               'Topic :: Scientific/Engineering',
               'Operating System :: Microsoft :: Windows',
               'Operating System :: POSIX',
               'Operating System :: Unix',
               'Operating System :: MacOS',
               'Programming Language :: Python :: 3.8',
               'Programming Language :: Python :: 3.9',
               'Programming Language :: Python :: 3.10',
               ]
EXTRAS_REQUIRE = {
    'tests': [
        'pytest',
        'pytest-cov',
        'flake8',
        'pydocstyle'],
}

setup(name=DISTNAME,
      maintainer=MAINTAINER,
      maintainer_email=MAINTAINER_EMAIL,
      description=DESCRIPTION,
      license=LICENSE,
      url=URL,
      version=VERSION,
      download_url=DOWNLOAD_URL,
      long_description=LONG_DESCRIPTION,
      zip_safe=False,  # the package can run out of an .egg file
      classifiers=CLASSIFIERS,
      packages=find_packages(),
      python_requires='>=3.8',
      install_requires=INSTALL_REQUIRES,
      extras_require=EXTRAS_REQUIRE)
