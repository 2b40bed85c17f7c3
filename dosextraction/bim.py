# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

import numpy as np
import scipy.sparse.linalg as lg
from scipy.sparse import csr_matrix, diags

__all__ = ['Bim1D']


class Bim1D():
    """
    Box integration discretization of the Poisson equation
    -d/dx(eps dv/dx) = rho on a non-uniform one-dimensional mesh.

    Each node is surrounded by a control volume bounded by the middles of its
    two adjacent elements. Material coefficients are either given per element
    (cell values, material interfaces on the nodes) or per node, in which case
    the flux through an element uses the harmonic mean of the permittivities
    of its two nodes.

    Parameters
    ----------
    xpts: numpy array of floats
        Mesh [m].

    Attributes
    ----------
    xpts: numpy array of floats
        Mesh.
    dx: numpy array of floats
        Element lengths.
    nx: integer
        Number of nodes.
    box: numpy array of floats
        Length of the control volume of each node.
    """

    def __init__(self, xpts):
        self.xpts = np.asarray(xpts, dtype=float)
        self.dx = self.xpts[1:] - self.xpts[:-1]
        self.nx = self.xpts.shape[0]

        self.box = np.zeros((self.nx,), dtype=float)
        self.box[:-1] += self.dx / 2.
        self.box[1:] += self.dx / 2.

    @staticmethod
    def harmonic_mean(a, b):
        """
        Harmonic mean 2ab/(a+b) of two arrays, zero where a+b vanishes.
        """
        a = np.asarray(a, dtype=float)
        b = np.asarray(b, dtype=float)
        s = a + b
        nonzero = s != 0
        return np.where(nonzero, 2 * a * b / np.where(nonzero, s, 1.), 0.)

    def _check_nodal(self, values, name):
        values = np.asarray(values, dtype=float)
        if values.ndim == 0:
            values = np.full((self.nx,), float(values))
        if values.shape != (self.nx,):
            raise ValueError("{0} must have one value per node ({1}), got shape "
                             "{2}.".format(name, self.nx, values.shape))
        return values

    def face_permittivity(self, eps):
        eps = np.asarray(eps, dtype=float)
        if eps.ndim == 0:
            return np.full((self.nx - 1,), float(eps))
        if eps.shape == (self.nx - 1,):
            return eps
        eps = self._check_nodal(eps, 'eps')
        return self.harmonic_mean(eps[:-1], eps[1:])

    def stiffness(self, eps):
        """
        Assemble the stiffness matrix.

        Parameters
        ----------
        eps: float or numpy array of floats
            Permittivity of each element or of each node [F/m].

        Returns
        -------
        A: scipy sparse csr matrix
            Symmetric tridiagonal matrix such that (A v)_i is the outgoing flux
            of the control volume of node i.
        """
        c = self.face_permittivity(eps) / self.dx

        # each element couples its two nodes
        sites = np.arange(self.nx - 1)
        rows = np.concatenate((sites, sites + 1, sites, sites + 1))
        columns = np.concatenate((sites, sites + 1, sites + 1, sites))
        data = np.concatenate((c, c, -c, -c))

        return csr_matrix((data, (rows, columns)), shape=(self.nx, self.nx),
                          dtype=np.float64)

    def mass(self, delta=1.):
        """
        Assemble the lumped mass matrix. With one coefficient delta per
        element, node i gets the sum of delta_e h_e / 2 over its adjacent
        elements, otherwise the control volume length times the nodal delta.
        """
        delta = np.asarray(delta, dtype=float)
        if delta.shape == (self.nx - 1,):
            h = delta * self.dx
            m = np.zeros((self.nx,), dtype=float)
            m[:-1] += h / 2.
            m[1:] += h / 2.
            return diags(m, format='csr')
        delta = self._check_nodal(delta, 'delta')
        return diags(self.box * delta, format='csr')

    def dirichlet(self, A, b, sites, values):
        """
        Replace the rows of the given sites by Dirichlet conditions.

        Parameters
        ----------
        A: scipy sparse matrix
            The system matrix.
        b: numpy array of floats
            The right hand side.
        sites: list of integers
            Nodes where the value is imposed.
        values: float or list of floats
            Imposed values.

        Returns
        -------
        A, b: scipy sparse csr matrix, numpy array of floats
            New matrix and right hand side, the inputs are not modified.
        """
        keep = np.ones((self.nx,), dtype=float)
        keep[sites] = 0
        A = diags(keep).dot(A) + diags(1 - keep)
        b = keep * np.asarray(b, dtype=float)
        b[sites] = values
        return csr_matrix(A), b

    def solve_linear(self, eps, v_left, v_right, rho=None, delta=1.):
        r"""
        Solve the linear Poisson equation with a fixed charge density.

        Parameters
        ----------
        eps: float or numpy array of floats
            Permittivity of each element or of each node [F/m].
        v_left, v_right: floats
            Potential imposed on the first and last nodes [V].
        rho: numpy array of floats
            Charge density of each node [C/m\ :sup:`3`], zero if None.
        delta: float or numpy array of floats
            Coefficient of the mass matrix, per element or per node.

        Returns
        -------
        v: numpy array of floats
        """
        A = self.stiffness(eps)
        b = np.zeros((self.nx,))
        if rho is not None:
            b = self.mass(delta).dot(self._check_nodal(rho, 'rho'))
        A, b = self.dirichlet(A, b, [0, self.nx - 1], [v_left, v_right])
        return lg.spsolve(A, b)
