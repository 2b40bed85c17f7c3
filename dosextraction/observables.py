# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

import numpy as np
import scipy.sparse.linalg as lg
from scipy.sparse import diags
from scipy.integrate import trapezoid


def capacitance(nlp, v):
    r"""
    Compute the low frequency small-signal capacitance of the stack.

    Parameters
    ----------
    nlp: NonLinearPoisson1D
        The solver used to compute the potential.
    v: numpy array of floats
        Converged electrostatic potential.

    Returns
    -------
    c: float
        Capacitance per unit area [F/m\ :sup:`2`], derivative of the gate
        charge with respect to the gate voltage.

    Notes
    -----
    The equation is linearized around v and solved for a unit variation of the
    gate potential. The capacitance is the resulting flux through the gate.
    """
    _, drho = nlp.dos.total_charge(v)
    J = nlp.A - diags(nlp.m * drho)
    Jbc, b = nlp.bim.dirichlet(J, np.zeros((nlp.bim.nx,)), nlp.sites, [0., 1.])
    u = lg.spsolve(Jbc, b)
    return J.dot(u)[-1]


def gate_charge(nlp, v):
    """
    Compute the charge per unit area on the gate [C/m^2].
    """
    rho, _ = nlp.dos.total_charge(v)
    flux = nlp.A.dot(v) - nlp.m * (nlp.rho_fixed + rho)
    return flux[-1]


def trapped_charge(system, rho):
    """
    Integrate the charge density over the semiconductor layer.

    Parameters
    ----------
    system: Builder
        The discretized system.
    rho: numpy array of floats
        Charge density on every node [C/m^3].

    Returns
    -------
    q: float
        Charge per unit area [C/m^2].
    """
    s = system.semiconductor_sites
    return trapezoid(rho[s], system.xpts[s])


def charge_center_of_mass(x, dens):
    # position of the center of mass of a density profile, nan if the profile
    # holds no charge
    total = trapezoid(dens, x)
    if total == 0:
        return np.nan
    return trapezoid(x * dens, x) / total
