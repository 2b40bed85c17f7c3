# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

import numpy as np
import scipy.constants as cts

from .params import InvalidParameter

import logging

__all__ = ['Builder', 'stack_mesh', 'layered_stack']


# fraction of the mesh nodes placed in the semiconductor layer
SEMICONDUCTOR_FRACTION = 0.6


class Builder():
    """
    A one-dimensional system discretized on a mesh.

    Parameters
    ----------
    xpts: numpy array of floats
        Mesh [m], strictly increasing.

    Attributes
    ----------
    xpts: numpy array of floats
        Mesh [m].
    dx: numpy array of floats
        Lattice constants [m].
    nx: integer
        Number of lattice nodes.
    xm: numpy array of floats
        Midpoints of the elements [m].
    epsilon: numpy array of floats
        Permittivity of each element [F/m].
    semiconductor: numpy array of booleans
        True on the elements that hold trapped charges.
    """

    def __init__(self, xpts):
        xpts = np.asarray(xpts, dtype=float)
        if xpts.ndim != 1 or xpts.size < 3:
            raise InvalidParameter("A mesh needs at least 3 nodes.")
        if np.any(np.diff(xpts) <= 0):
            raise InvalidParameter("Mesh positions must be strictly increasing.")

        self.xpts = xpts
        self.dx = xpts[1:] - xpts[:-1]
        self.nx = xpts.shape[0]
        self.xm = (xpts[1:] + xpts[:-1]) / 2.

        self.epsilon = np.zeros((self.nx - 1,), dtype=float)
        self.semiconductor = np.zeros((self.nx - 1,), dtype=bool)

    def add_material(self, mat, location=lambda pos: True):
        """
        Add a material to the system.

        Parameters
        ----------
        mat: dictionary
            Contains the material parameters. Keys are epsilon: relative
            permittivity (default 1), semiconductor: True if the material holds
            the trapped charges of the density of states (default False).
        location: Boolean function
            Definition of the region containing the material. This function
            must take the array of element midpoints as parameter, and return
            True (False) for the elements inside (outside) the region.
        """
        s = get_cells(self, location)

        epsilon = mat.get('epsilon', 1)
        if epsilon <= 0:
            raise InvalidParameter("The permittivity must be positive.")
        self.epsilon[s] = epsilon * cts.epsilon_0
        self.semiconductor[s] = bool(mat.get('semiconductor', False))

    @property
    def semiconductor_nodes(self):
        # nodes touching at least one semiconductor element, the nodes of the
        # interfaces included
        mask = np.zeros((self.nx,), dtype=bool)
        mask[:-1] |= self.semiconductor
        mask[1:] |= self.semiconductor
        return mask

    @property
    def semiconductor_sites(self):
        return np.nonzero(self.semiconductor_nodes)[0]


def get_cells(sys, location):
    # find the elements which belong to a region
    cells = np.arange(sys.nx - 1, dtype=int)
    mask = location(sys.xm)
    if type(mask) == bool:
        return cells if mask else cells[:0]
    return cells[np.asarray(mask).astype(bool)]


def stack_mesh(t_semic, t_ins, nNodes):
    """
    Mesh of a semiconductor/insulator stack. The semiconductor occupies
    [-t_semic, 0] and the insulator [0, t_ins]. Each layer is meshed uniformly
    and the interface x = 0 is a mesh node shared by the two layers, so that
    every element belongs to a single material.

    Parameters
    ----------
    t_semic, t_ins: floats
        Thicknesses of the layers [m].
    nNodes: integer
        Total number of nodes (at least 4), floor(0.6 nNodes) of them in
        [-t_semic, 0].

    Returns
    -------
    xpts: numpy array of floats
    """
    if nNodes < 4:
        raise InvalidParameter("At least 4 mesh nodes are needed, got {0}."\
                               .format(nNodes))
    if t_semic <= 0 or t_ins <= 0:
        raise InvalidParameter("Layer thicknesses must be positive.")

    ns = int(np.floor(SEMICONDUCTOR_FRACTION * nNodes))
    ni = nNodes - ns

    return np.concatenate((np.linspace(-t_semic, 0, ns),
                           np.linspace(0, t_ins, ni + 1)[1:]))


def layered_stack(geometry, nNodes):
    """
    Build the discretized semiconductor/insulator stack.

    Parameters
    ----------
    geometry: Geometry
        Thicknesses and relative permittivities of the layers.
    nNodes: integer
        Number of mesh nodes.

    Returns
    -------
    system: Builder
    """
    system = Builder(stack_mesh(geometry.t_semic, geometry.t_ins, nNodes))

    semic = lambda pos: pos < 0
    ins = lambda pos: pos > 0
    system.add_material({'epsilon': geometry.eps_semic, 'semiconductor': True},
                        semic)
    system.add_material({'epsilon': geometry.eps_ins}, ins)

    logging.debug("Mesh with {0} nodes, {1} in the semiconductor"\
                  .format(system.nx, len(system.semiconductor_sites)))
    return system
