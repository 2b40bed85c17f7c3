#!/usr/bin/env python3

# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

from setuptools import setup


def status_msgs(*msgs):
    print()
    for msg in msgs:
        print(msg)
    print()


def run_setup(packages):
    # populate the version_info dictionary with values stored in the version file
    version_info = {}
    with open('dosextraction/_version.py', 'r') as f:
        exec(f.read(), {}, version_info)

    setup(
        name = 'dosextraction',
        version = version_info['__version__'],
        description = 'Nonlinear Poisson solver for the extraction of the '
                      'density of states of semiconductor/insulator stacks',
        packages = packages,
        python_requires = '>=3.8',
        install_requires = ['numpy', 'scipy>=1.6'],
        extras_require = {
            'plot': ['matplotlib'],
            'test': ['pytest', 'matplotlib'],
        },
        entry_points = {
            'console_scripts': ['dosextraction = dosextraction.simulate:main'],
        },
        classifiers = [
            'Intended Audience :: Science/Research',
            'Programming Language :: Python :: 3',
        ],
    )


packages = ['dosextraction']
run_setup(packages)
status_msgs("Done")
