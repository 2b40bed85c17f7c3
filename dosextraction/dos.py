# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

import numpy as np

from . import quadrature
from .charge import RULE_FOR, make_distribution, density, UnknownVariant
from .params import InvalidParameter

import logging

__all__ = ['DosModel']


class DosModel():
    """
    Density of states made of a superposition of charge distributions.

    Parameters
    ----------
    components: list of ChargeDistribution
        The components of the model. Components with a zero density scale are
        kept but do not contribute to the charge.

    Attributes
    ----------
    components: tuple of ChargeDistribution
        Components of the model in the order they were given.
    """

    def __init__(self, components):
        self.components = tuple(components)
        if len(self.components) == 0:
            raise InvalidParameter("A density of states needs at least one "
                                   "component.")

    @classmethod
    def from_params(cls, params, model='gaussian', order=101,
                    method='golub-welsch', maxiter=1000, tol=1e-14):
        """
        Build the density of states described by a list of parameters.

        Parameters
        ----------
        params: ParamList
            Simulation parameters.
        model: string
            'gaussian' to use the Gaussian components of params, 'exponential'
            to use its exponential component.
        order: integer
            Number of nodes of the quadrature rule shared by all components.
        method: string
            Quadrature algorithm ('golub-welsch' or 'newton').
        maxiter, tol:
            Settings of the 'newton' quadrature algorithm.

        Returns
        -------
        dos: DosModel
        """
        kind = str(model).lower()
        if kind not in RULE_FOR:
            raise UnknownVariant("Unknown density of states model '{0}'."\
                                 .format(model))

        if kind == 'gaussian':
            components = params.components
        else:
            if params.exponential is None:
                raise InvalidParameter("Simulation {0} has no exponential "
                                       "component.".format(params.simulationNo))
            components = (params.exponential,)

        rule = quadrature.rule(RULE_FOR[kind], order, method=method,
                               maxiter=maxiter, tol=tol)
        logging.debug("{0} density of states with {1} component(s)"\
                      .format(kind, len(components)))

        return cls([make_distribution(kind, c.N0, c.sigma, c.shift,
                                      T=params.T, rule=rule)
                    for c in components])

    def total_charge(self, phi):
        """
        Total charge density and its derivative with respect to the potential.

        Parameters
        ----------
        phi: float or numpy array of floats
            Electrostatic potential [V].

        Returns
        -------
        rho, drho: numpy arrays of floats
            Charge density [C/m³] and its derivative [C/(m³ V)].
        """
        phi = np.asarray(phi, dtype=float)
        rho = np.zeros(phi.shape)
        drho = np.zeros(phi.shape)
        for dist in self.components:
            if dist.N0 == 0:
                continue
            r, d = density(dist, phi)
            rho = rho + r
            drho = drho + d
        return rho, drho

    def charge(self, phi):
        return self.total_charge(phi)[0]
