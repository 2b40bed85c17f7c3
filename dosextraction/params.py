# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

import os
import configparser
import numpy as np
import scipy.constants as cts
from collections import namedtuple

from .quadrature import UnknownVariant, METHODS
from .charge import RULE_FOR

__all__ = ['Geometry', 'DosComponent', 'Sweep', 'ParamList', 'Settings',
           'load_settings']


# maximum number of Gaussian components of a density of states
MAX_COMPONENTS = 4

# column layout of a row of the parameters file
FIELDS = ['simulationNo', 't_semic', 't_ins', 'eps_semic', 'eps_ins', 'Wf',
          'Ea', 'N0', 'sigma', 'N0_2', 'sigma_2', 'shift_2', 'N0_3', 'sigma_3',
          'shift_3', 'N0_4', 'sigma_4', 'shift_4', 'N0_exp', 'lambda_exp',
          'A_semic', 'C_sb', 'nNodes', 'nSteps', 'V_min', 'V_max']

# same layout without the exponential and post-processing columns
SHORT_FIELDS = [f for f in FIELDS
                if f not in ('N0_exp', 'lambda_exp', 'A_semic', 'C_sb')]

REQUIRED = ['simulationNo', 't_semic', 't_ins', 'eps_semic', 'eps_ins', 'Wf',
            'Ea', 'N0', 'sigma', 'nNodes', 'nSteps', 'V_min', 'V_max']


class InvalidParameter(ValueError):
    pass


# thicknesses [m] and relative permittivities of the semiconductor and
# insulator layers
Geometry = namedtuple('Geometry', ['t_semic', 't_ins', 'eps_semic', 'eps_ins'])

# density scale [m^-3], spread [J] and energy shift [eV] of a DOS component
DosComponent = namedtuple('DosComponent', ['N0', 'sigma', 'shift'])


class Sweep(namedtuple('Sweep', ['nNodes', 'nSteps', 'V_min', 'V_max'])):
    """
    Mesh resolution and gate bias sweep of a simulation.
    """
    __slots__ = ()

    @property
    def voltages(self):
        return np.linspace(self.V_min, self.V_max, self.nSteps)


def _number(value, name):
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidParameter("Parameter '{0}' is not a number: {1!r}."\
                               .format(name, value))
    if not np.isfinite(value):
        raise InvalidParameter("Parameter '{0}' is not finite.".format(name))
    return value


def _integer(value, name):
    value = _number(value, name)
    if value != int(value):
        raise InvalidParameter("Parameter '{0}' must be an integer, got {1}."\
                               .format(name, value))
    return int(value)


def _check(condition, message):
    if not condition:
        raise InvalidParameter(message)


class ParamList(namedtuple('ParamList', ['simulationNo', 'geometry', 'Wf', 'Ea',
                                         'components', 'sweep', 'exponential',
                                         'A_semic', 'C_sb', 'T'])):
    r"""
    Immutable set of parameters of a simulation.

    Parameters
    ----------
    simulationNo: integer
        Identifier of the simulation.
    geometry: Geometry
        Thicknesses [m] and relative permittivities of the two layers.
    Wf, Ea: floats
        Gate work function and semiconductor electron affinity [eV].
    components: list of DosComponent
        One to four Gaussian components of the density of states. Spreads are
        in J, shifts in eV.
    sweep: Sweep
        Number of mesh nodes and gate bias sweep.
    exponential: DosComponent
        Exponential component of the density of states (optional).
    A_semic: float
        Device area [m\ :sup:`2`] used to compare with measured capacitances.
    C_sb: float
        Stray capacitance [F] added to the simulated capacitance.
    T: float
        Temperature [K].

    Notes
    -----
    All values are checked when the object is created and InvalidParameter is
    raised for non-physical ones.
    """
    __slots__ = ()

    def __new__(cls, simulationNo, geometry, Wf, Ea, components, sweep,
                exponential=None, A_semic=1., C_sb=0., T=300.):
        simulationNo = _integer(simulationNo, 'simulationNo')
        _check(simulationNo >= 0, "simulationNo must be non-negative.")

        geometry = Geometry(*[_number(v, n) for v, n in
                              zip(geometry, Geometry._fields)])
        for name, value in geometry._asdict().items():
            _check(value > 0, "{0} must be positive, got {1}.".format(name, value))

        components = tuple(DosComponent(*[_number(v, n) for v, n in
                                          zip(c, DosComponent._fields)])
                           for c in components)
        _check(1 <= len(components) <= MAX_COMPONENTS,
               "Between 1 and {0} DOS components are allowed, got {1}."\
               .format(MAX_COMPONENTS, len(components)))
        if exponential is not None:
            exponential = DosComponent(*[_number(v, n) for v, n in
                                         zip(exponential, DosComponent._fields)])
        for idx, c in enumerate(components + (exponential,)):
            if c is None:
                continue
            _check(c.N0 >= 0, "N0 of component {0} must be non-negative."\
                              .format(idx+1))
            _check(c.sigma >= 0, "sigma of component {0} must be non-negative."\
                                 .format(idx+1))
            _check(c.N0 == 0 or c.sigma > 0,
                   "sigma of component {0} must be positive.".format(idx+1))

        sweep = Sweep(_integer(sweep[0], 'nNodes'), _integer(sweep[1], 'nSteps'),
                      _number(sweep[2], 'V_min'), _number(sweep[3], 'V_max'))
        _check(sweep.nNodes >= 4, "At least 4 mesh nodes are needed, got {0}."\
                                  .format(sweep.nNodes))
        _check(sweep.nSteps >= 1, "At least one bias step is needed.")

        A_semic = _number(A_semic, 'A_semic')
        _check(A_semic > 0, "A_semic must be positive.")
        C_sb = _number(C_sb, 'C_sb')
        T = _number(T, 'T')
        _check(T > 0, "The temperature must be positive.")

        return super().__new__(cls, simulationNo, geometry, _number(Wf, 'Wf'),
                               _number(Ea, 'Ea'), components, sweep,
                               exponential, A_semic, C_sb, T)

    @classmethod
    def from_mapping(cls, mapping):
        """
        Create the parameters from a flat mapping of option names to values,
        such as a configuration file section or a row of the parameters file.
        Spreads (sigma, lambda_exp) are given in units of kT and converted to
        J.

        Parameters
        ----------
        mapping: dictionary
            Keys are the option names listed in params.FIELDS (and T).

        Returns
        -------
        params: ParamList
        """
        missing = [key for key in REQUIRED if key not in mapping]
        if missing:
            raise InvalidParameter("Missing parameter(s): {0}."\
                                   .format(', '.join(missing)))

        T = _number(mapping.get('T', 300.), 'T')
        _check(T > 0, "The temperature must be positive.")
        kT = cts.k * T

        components = [DosComponent(mapping['N0'],
                                   _number(mapping['sigma'], 'sigma') * kT, 0.)]
        for k in range(2, MAX_COMPONENTS + 1):
            if 'N0_{0}'.format(k) not in mapping:
                continue
            sigma = 'sigma_{0}'.format(k)
            if sigma not in mapping:
                raise InvalidParameter("Missing parameter: {0}.".format(sigma))
            components.append(DosComponent(
                mapping['N0_{0}'.format(k)],
                _number(mapping[sigma], sigma) * kT,
                mapping.get('shift_{0}'.format(k), 0.)))

        exponential = None
        if 'N0_exp' in mapping:
            exponential = DosComponent(
                mapping['N0_exp'],
                _number(mapping.get('lambda_exp', 1.), 'lambda_exp') * kT, 0.)

        geometry = Geometry(mapping['t_semic'], mapping['t_ins'],
                            mapping['eps_semic'], mapping['eps_ins'])
        sweep = Sweep(mapping['nNodes'], mapping['nSteps'], mapping['V_min'],
                      mapping['V_max'])

        return cls(mapping['simulationNo'], geometry, mapping['Wf'],
                   mapping['Ea'], components, sweep, exponential=exponential,
                   A_semic=mapping.get('A_semic', 1.),
                   C_sb=mapping.get('C_sb', 0.), T=T)

    @classmethod
    def from_row(cls, row):
        """
        Create the parameters from a row of the parameters file. Rows hold
        either the 26 values listed in params.FIELDS or the 22 values of
        params.SHORT_FIELDS.
        """
        row = list(row)
        if len(row) == len(FIELDS):
            return cls.from_mapping(dict(zip(FIELDS, row)))
        elif len(row) == len(SHORT_FIELDS):
            return cls.from_mapping(dict(zip(SHORT_FIELDS, row)))
        raise InvalidParameter("A row of parameters has {0} or {1} values, got "
                               "{2}.".format(len(FIELDS), len(SHORT_FIELDS),
                                             len(row)))


Settings = namedtuple('Settings', ['params_file', 'experimental_file',
                                   'has_headers', 'simulate_all', 'indexes',
                                   'params', 'output_directory', 'plot', 'fmt',
                                   'quadrature_method', 'quadrature_order',
                                   'quadrature_maxiter', 'quadrature_tol',
                                   'dos_model', 'maxiter', 'tol', 'processes'])


# default content of a configuration file
DEFAULTS = {
    'Input': {'params': 'input_params.csv',
              'experimental': '',
              'has_headers': 'True',
              'simulate_all': 'True',
              'indexes': ''},
    'Output': {'directory': 'output',
               'plot': 'False',
               'fmt': 'gzip'},
    'QuadratureRule': {'method': 'golub-welsch',
                       'nNodes': '101',
                       'maxIterationsNo': '1000',
                       'tolerance': '1e-14'},
    'DOS': {'model': 'gaussian'},
    'NLP': {'maxIterationsNo': '100',
            'tolerance': '1e-8'},
    'Run': {'nProcesses': '1'},
}


def load_settings(filename=None):
    """
    Read the settings of a run from a configuration file. Options absent from
    the file take their default value (see params.DEFAULTS).

    Parameters
    ----------
    filename: string
        Path of the configuration file. Relative input and output paths are
        taken relative to the directory of this file. If None, the defaults
        are returned.

    Returns
    -------
    settings: Settings
        Named tuple of the settings. The field params holds the content of an
        optional [Params] section (a dictionary), None otherwise.
    """
    config = configparser.ConfigParser()
    # keep the case of the option names (nNodes, N0_2, ...)
    config.optionxform = str
    config.read_dict(DEFAULTS)

    root = ''
    if filename is not None:
        with open(filename) as f:
            config.read_file(f)
        root = os.path.dirname(os.path.abspath(filename))

    def path(value):
        if value == '':
            return None
        return os.path.join(root, value)

    try:
        indexes = config.get('Input', 'indexes')
        indexes = tuple(int(i) for i in indexes.replace(',', ' ').split())
        settings = Settings(
            params_file = path(config.get('Input', 'params')),
            experimental_file = path(config.get('Input', 'experimental')),
            has_headers = config.getboolean('Input', 'has_headers'),
            simulate_all = config.getboolean('Input', 'simulate_all'),
            indexes = indexes,
            params = dict(config.items('Params')) if config.has_section('Params')
                     else None,
            output_directory = path(config.get('Output', 'directory')),
            plot = config.getboolean('Output', 'plot'),
            fmt = config.get('Output', 'fmt'),
            quadrature_method = config.get('QuadratureRule', 'method').lower(),
            quadrature_order = config.getint('QuadratureRule', 'nNodes'),
            quadrature_maxiter = config.getint('QuadratureRule', 'maxIterationsNo'),
            quadrature_tol = config.getfloat('QuadratureRule', 'tolerance'),
            dos_model = config.get('DOS', 'model').lower(),
            maxiter = config.getint('NLP', 'maxIterationsNo'),
            tol = config.getfloat('NLP', 'tolerance'),
            processes = config.getint('Run', 'nProcesses'))
    except ValueError as exc:
        raise InvalidParameter("Invalid configuration: {0}".format(exc))

    if settings.quadrature_method not in METHODS:
        raise UnknownVariant("Unknown quadrature method '{0}'."\
                             .format(settings.quadrature_method))
    if settings.dos_model not in RULE_FOR:
        raise UnknownVariant("Unknown density of states model '{0}'."\
                             .format(settings.dos_model))
    if settings.fmt not in ('gzip', 'mat'):
        raise UnknownVariant("Unknown output format '{0}'.".format(settings.fmt))
    _check(settings.maxiter >= 1, "NLP maxIterationsNo must be positive.")
    _check(settings.tol > 0, "NLP tolerance must be positive.")
    _check(settings.processes >= 1, "nProcesses must be positive.")
    if not settings.simulate_all and len(settings.indexes) == 0:
        raise InvalidParameter("No simulation selected: set simulate_all or "
                               "indexes.")

    return settings
