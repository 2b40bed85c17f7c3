# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

import numpy as np
from scipy.integrate import trapezoid
from collections import namedtuple

from .utils import deriv, interp1

import logging


# named tuple of the comparison between a simulated and a measured
# capacitance-voltage curve
Fit = namedtuple('Fit', ['V_shift', 'error_L2', 'error_H1', 'C_acc',
                         'center_of_mass', 'V_exp', 'C_exp', 'dC_exp', 'V_sim',
                         'C_sim', 'dC_sim'])


def _distance(a, b, x):
    # squared L2 distance over the points where both curves are defined
    ok = ~np.isnan(a) & ~np.isnan(b)
    if np.count_nonzero(ok) < 2:
        return np.nan
    return trapezoid((a[ok] - b[ok])**2, x[ok])


class Analyzer():
    r"""
    Object that compares a simulated capacitance-voltage curve with a measured
    one.

    Parameters
    ----------
    V: numpy array of floats
        Simulated gate voltages [V], increasing.
    C: numpy array of floats
        Simulated capacitance per unit area [F/m\ :sup:`2`].
    A_semic: float
        Device area [m\ :sup:`2`].
    C_sb: float
        Stray capacitance [F].

    Attributes
    ----------
    V: numpy array of floats
        Simulated gate voltages.
    C: numpy array of floats
        Simulated device capacitance C A_semic + C_sb [F].
    dC: numpy array of floats
        Derivative of C with respect to V.
    C_acc: float
        Largest simulated capacitance per unit area.
    """

    def __init__(self, V, C, A_semic=1., C_sb=0.):
        self.V = np.asarray(V, dtype=float)
        c = np.asarray(C, dtype=float)
        self.C = c * A_semic + C_sb
        self.dC = deriv(self.C, self.V)
        self.C_acc = c.max()

    @classmethod
    def from_points(cls, points, A_semic=1., C_sb=0.):
        """
        Create the analyzer from the result of a bias sweep.
        """
        return cls([p.V for p in points], [p.capacitance for p in points],
                   A_semic=A_semic, C_sb=C_sb)

    def fit(self, V_exp, C_exp, center_of_mass=np.nan):
        """
        Compare with a measured curve.

        The simulated curve is shifted along the voltage axis so that the
        maxima of dC/dV of both curves coincide. The measured curve is then
        interpolated on the shifted simulated voltages to compute the L2
        distance between capacitances and the H1 distance (capacitances and
        their derivatives).

        Parameters
        ----------
        V_exp, C_exp: numpy arrays of floats
            Measured voltages [V] and capacitances [F], in any order.
        center_of_mass: float
            Position of the trapped charge center of mass, reported as is.

        Returns
        -------
        fit: Fit
            Named tuple with fields V_shift, error_L2, error_H1, C_acc,
            center_of_mass and the two curves with their derivatives (V_sim is
            shifted by V_shift).
        """
        V_exp = np.asarray(V_exp, dtype=float)
        C_exp = np.asarray(C_exp, dtype=float)
        order = np.argsort(V_exp, kind='stable')
        V_exp, C_exp = V_exp[order], C_exp[order]
        dC_exp = deriv(C_exp, V_exp)

        V_shift = self.V[np.argmax(self.dC)] - V_exp[np.argmax(dC_exp)]
        V_centered = self.V - V_shift

        C_interp = interp1(V_exp, C_exp, V_centered)
        dC_interp = interp1(V_exp, dC_exp, V_centered)

        l2 = _distance(C_interp, self.C, V_centered)
        error_L2 = np.sqrt(l2)
        error_H1 = np.sqrt(l2 + _distance(dC_interp, self.dC, V_centered))

        logging.info("V_shift = {0}".format(V_shift))
        logging.info("Charge center of mass = {0}".format(center_of_mass))
        logging.info("C_acc* = {0}".format(self.C_acc))
        logging.info("L2-distance = {0}, H1-distance = {1}"\
                     .format(error_L2, error_H1))

        return Fit(V_shift, error_L2, error_H1, self.C_acc, center_of_mass,
                   V_exp, C_exp, dC_exp, V_centered, self.C, self.dC)
