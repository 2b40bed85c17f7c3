# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

import numpy as np
import scipy.constants as cts
from collections import namedtuple

from . import quadrature
from .quadrature import UnknownVariant

__all__ = ['ChargeDistribution', 'make_distribution', 'density',
           'UnknownVariant']


# Largest magnitude allowed for the exponent of the occupation factor. Beyond
# it exp() overflows and the occupation would turn into 0/inf = nan.
EXPONENT_LIMIT = 500.

# quadrature family paired with each distribution
RULE_FOR = {'gaussian': 'hermite',
            'exponential': 'laguerre'}

# named tuple of a charge component: variant name, density scale [m^-3],
# spread [J], energy shift [eV], quadrature rule and temperature [K]
ChargeDistribution = namedtuple('ChargeDistribution', ['kind', 'N0', 'sigma',
                                                       'shift', 'rule', 'T'])


def make_distribution(name, N0, sigma, shift=0., order=101,
                      method='golub-welsch', T=300., rule=None):
    r"""
    Create a charge distribution from its variant name.

    Parameters
    ----------
    name: string
        'gaussian' or 'exponential' (case insensitive). A Gaussian
        distribution is integrated with a Gauss-Hermite rule, an exponential
        one with a Gauss-Laguerre rule.
    N0: float
        Total density of states of the component [m\ :sup:`-3`].
    sigma: float
        Standard deviation of the Gaussian or characteristic energy of the
        exponential [J].
    shift: float
        Energy shift of the component [eV]. The component is evaluated at the
        potential phi + shift.
    order: integer
        Number of quadrature nodes, ignored if rule is given.
    method: string
        Quadrature algorithm, see quadrature.gauss_hermite.
    T: float
        Temperature [K].
    rule: QuadratureRule
        An already built rule to share between several components.

    Returns
    -------
    distribution: ChargeDistribution
    """
    kind = str(name).lower()
    if kind not in RULE_FOR:
        raise UnknownVariant("Unknown charge distribution '{0}', expected one "
                             "of {1}.".format(name, ', '.join(sorted(RULE_FOR))))

    if rule is None:
        rule = quadrature.rule(RULE_FOR[kind], order, method=method)
    elif rule.kind != RULE_FOR[kind]:
        raise ValueError("A {0} distribution must be integrated with a {1} "
                         "rule, got a {2} rule.".format(kind, RULE_FOR[kind],
                                                        rule.kind))

    return ChargeDistribution(kind, float(N0), float(sigma), float(shift),
                              rule, float(T))


def _gaussian_levels(dist):
    # E = sqrt(2) sigma x maps exp(-E^2 / 2 sigma^2) onto exp(-x^2)
    return np.sqrt(2.) * dist.sigma * dist.rule.nodes, dist.N0 / np.sqrt(np.pi)


def _exponential_levels(dist):
    # E = sigma x maps exp(-E / sigma) onto exp(-x)
    return dist.sigma * dist.rule.nodes, dist.N0


_levels = {'gaussian': _gaussian_levels,
           'exponential': _exponential_levels}


def occupation(energies, phi, T):
    """
    Fermi-Dirac occupation of the trap levels for each potential value.

    Parameters
    ----------
    energies: numpy array of floats
        Trap energies [J].
    phi: numpy array of floats
        Electrostatic potential [V].
    T: float
        Temperature [K].

    Returns
    -------
    f, g: numpy arrays of floats of shape (phi.size, energies.size)
        Occupation f and its complement g = 1 - f.
    """
    arg = (energies[np.newaxis, :] - cts.e * phi[:, np.newaxis]) / (cts.k * T)
    e = np.exp(np.clip(arg, -EXPONENT_LIMIT, EXPONENT_LIMIT))
    f = 1. / (1. + e)
    # 1 - f written without cancellation
    return f, e * f


def density(dist, phi):
    r"""
    Charge density of a distribution and its derivative with respect to the
    electrostatic potential.

    Parameters
    ----------
    dist: ChargeDistribution
        The charge component.
    phi: float or numpy array of floats
        Electrostatic potential [V].

    Returns
    -------
    rho, drho: floats or numpy arrays of floats
        Charge density [C/m\ :sup:`3`] and its derivative [C/(m\ :sup:`3` V)].
        The derivative of the occupation is computed analytically:
        df/dphi = q/(kT) f (1 - f).

    Notes
    -----
    Components with N0 = 0 give exactly zero, whatever their spread and shift.
    """
    scalar = np.ndim(phi) == 0
    phi = np.atleast_1d(np.asarray(phi, dtype=float))

    if dist.N0 == 0:
        rho = np.zeros_like(phi)
        drho = np.zeros_like(phi)
    else:
        energies, prefactor = _levels[dist.kind](dist)
        f, g = occupation(energies, phi + dist.shift, dist.T)
        w = dist.rule.weights
        n = prefactor * f.dot(w)
        dn = prefactor * cts.e / (cts.k * dist.T) * (f * g).dot(w)
        rho = -cts.e * n
        drho = -cts.e * dn

    if scalar:
        return rho[0], drho[0]
    return rho, drho
