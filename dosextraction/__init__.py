# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

from ._version import __version__

__all__ = ['quadrature', 'charge', 'dos', 'builder', 'bim', 'solvers',
           'observables', 'analyzer', 'params', 'utils', 'plotter']
for module in __all__:
    exec('from . import {0}'.format(module))

available = [('quadrature', ['gauss_hermite', 'gauss_laguerre']),
             ('charge', ['make_distribution']),
             ('dos', ['DosModel']),
             ('builder', ['Builder', 'layered_stack']),
             ('bim', ['Bim1D']),
             ('solvers', ['NonLinearPoisson1D', 'Solver', 'solve', 'sweep',
                          'NonConvergence']),
             ('analyzer', ['Analyzer']),
             ('params', ['ParamList', 'load_settings']),
             ('utils', ['save_sim', 'load_sim'])]
for module, names in available:
    exec('from .{0} import {1}'.format(module, ', '.join(names)))
    __all__.extend(names)
