# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

import numpy as np
import scipy.sparse.linalg as lg
from scipy.sparse import diags
from collections import namedtuple

from .bim import Bim1D
from . import observables

import logging

__all__ = ['NonLinearPoisson1D', 'Solver', 'solve', 'sweep', 'BiasPoint',
           'NonConvergence']


class NonConvergence(Exception):
    """
    Raised when the Newton-Raphson iteration fails to converge.

    Attributes
    ----------
    points: list of BiasPoint
        Bias points converged before the failure during a bias sweep.
    """
    def __init__(self, msg='', points=None):
        super().__init__(msg)
        self.points = [] if points is None else points


# named tuple of the solution at one applied voltage: gate voltage [V],
# potential [V], charge density [C/m^3], capacitance [F/m^2], gate charge
# [C/m^2], trapped charge per unit area [C/m^2] and number of Newton
# iterations
BiasPoint = namedtuple('BiasPoint', ['V', 'v', 'rho', 'capacitance', 'charge',
                                     'trapped', 'iterations'])


class NonLinearPoisson1D():
    r"""
    Newton-Raphson solver of the nonlinear Poisson equation
    -d/dx(eps dv/dx) = delta (rho_fixed + rho(v)) for one applied voltage,
    with Dirichlet conditions on both ends of the mesh.

    Parameters
    ----------
    bim: Bim1D
        Discretization of the linear operator.
    epsilon: numpy array of floats
        Permittivity of each element [F/m].
    delta: numpy array of floats
        Coefficient of the charge term of each element, 1 in the semiconductor
        and 0 in the insulator.
    dos: object
        Charge model, its method total_charge(v) returns the charge density and
        its derivative with respect to the potential.
    rho_fixed: numpy array of floats
        Charge density independent of the potential [C/m\ :sup:`3`].
    tol: float
        Accepted error on the potential update [V].
    maxiter: integer
        Maximum number of Newton steps.
    max_backtracks: integer
        Maximum number of step halvings of the line search.
    verbose: boolean
        Log the step number and the associated error at every step if True.

    Attributes
    ----------
    state: string
        'initialized', 'iterating', 'converged' or 'diverged'.
    v: numpy array of floats
        Last computed potential.
    iterations: integer
        Number of Newton steps of the last solve.
    norms: list of floats
        Residual norm at the start of every Newton step.
    steps: list of floats
        Damping factor of every potential update, 1 for a full Newton step.
    """

    def __init__(self, bim, epsilon, delta, dos, rho_fixed=None, tol=1e-8,
                 maxiter=100, max_backtracks=30, verbose=True):
        self.bim = bim
        self.dos = dos
        self.tol = tol
        self.maxiter = maxiter
        self.max_backtracks = max(1, max_backtracks)
        self.verbose = verbose

        nx = bim.nx
        self.A = bim.stiffness(epsilon)
        # lumped mass restricted to the charged nodes
        self.m = bim.mass(delta).diagonal()
        if rho_fixed is None:
            self.rho_fixed = np.zeros((nx,))
        else:
            self.rho_fixed = np.asarray(rho_fixed, dtype=float)
        self.sites = [0, nx - 1]

        self.state = 'initialized'
        self.v = None
        self.iterations = 0
        self.norms = []
        self.steps = []

    def residual(self, v, v_bc):
        # flux balance on interior nodes, imposed values on the boundaries
        rho, drho = self.dos.total_charge(v)
        f = self.A.dot(v) - self.m * (self.rho_fixed + rho)
        f[self.sites] = v[self.sites] - v_bc
        return f, drho

    def jacobian(self, drho):
        J = self.A - diags(self.m * drho)
        J, _ = self.bim.dirichlet(J, np.zeros((self.bim.nx,)), self.sites, 0)
        return J

    def _sparse_solver(self, J, f):
        with np.errstate(all='ignore'):
            dx = lg.spsolve(J.tocsr(), f)
        return dx

    def apply(self, guess, v_left, v_right):
        """
        Solve the nonlinear Poisson equation.

        Parameters
        ----------
        guess: numpy array of floats
            Initial potential [V], the boundary values are overwritten.
        v_left, v_right: floats
            Potential imposed on the first and last nodes [V].

        Returns
        -------
        v: numpy array of floats
            Converged potential. NonConvergence is raised if no solution is
            found.
        """
        v = np.array(guess, dtype=float)
        if v.shape != (self.bim.nx,):
            raise ValueError("The initial guess must have {0} values, got shape "
                             "{1}.".format(self.bim.nx, v.shape))
        v_bc = np.array([v_left, v_right], dtype=float)
        v[self.sites] = v_bc

        self.state = 'iterating'
        self.norms = []
        self.steps = []
        f, drho = self.residual(v, v_bc)
        norm = np.linalg.norm(f)

        cc = 0
        while True:
            cc = cc + 1
            # break if no solution found after maxiterations
            if cc > self.maxiter:
                self.state = 'diverged'
                msg = "**  Maximum number of iterations reached  **"
                logging.error(msg)
                raise NonConvergence("No convergence after {0} Newton steps."\
                                     .format(self.maxiter))
            self.norms.append(norm)

            # solve linear system
            J = self.jacobian(drho)
            dx = self._sparse_solver(J, -f)

            # compute error
            error = np.max(np.abs(dx))
            if np.isnan(error) or error > 1e30:
                self.state = 'diverged'
                msg = "**  The Newton-Raphson algorithm diverged, try a better "\
                      "guess or finer grid  **"
                logging.error(msg)
                raise NonConvergence("Newton update is not finite at step {0}."\
                                     .format(cc))

            if error < self.tol:
                v += dx
                self.steps.append(1.)
                if self.verbose:
                    logging.info('step {0}, error = {1}'.format(cc, error))
                break

            # backtracking line search on the residual norm
            step = 1.
            for _ in range(self.max_backtracks):
                trial = v + step * dx
                f_trial, drho_trial = self.residual(trial, v_bc)
                norm_trial = np.linalg.norm(f_trial)
                if norm_trial < norm:
                    break
                step *= 0.5
            else:
                # keep the shortest step tried
                step *= 2
                logging.warning("Line search could not reduce the residual at "
                                "step {0}, taking a step of {1}"\
                                .format(cc, step))

            v, f, drho, norm = trial, f_trial, drho_trial, norm_trial
            self.steps.append(step)

            # print status of solution procedure
            if self.verbose:
                logging.info('step {0}, error = {1}, damping = {2}'\
                             .format(cc, error, step))

        self.state = 'converged'
        self.iterations = cc
        self.v = v
        return v


class Solver():
    """
    An object that creates an interface for the nonlinear Poisson solver of a
    layered stack and for the gate bias sweep.

    Parameters
    ----------
    tol: float
        Accepted error made by the Newton-Raphson scheme [V].
    maxiter: integer
        Maximum number of steps taken by the Newton-Raphson scheme.
    max_backtracks: integer
        Maximum number of step halvings of the line search.
    """

    def __init__(self, tol=1e-8, maxiter=100, max_backtracks=30):
        self.tol = tol
        self.maxiter = maxiter
        self.max_backtracks = max_backtracks

    def make_solver(self, system, dos, rho_fixed=None, verbose=True):
        """
        Create the Newton solver of a discretized system.

        Parameters
        ----------
        system: Builder
            The discretized system.
        dos: DosModel
            The charge model of the semiconductor nodes.
        rho_fixed: numpy array of floats
            Additional charge density independent of the potential.
        verbose: boolean
            Log every Newton step if True.

        Returns
        -------
        nlp: NonLinearPoisson1D
        """
        return NonLinearPoisson1D(Bim1D(system.xpts), system.epsilon,
                                  system.semiconductor.astype(float), dos,
                                  rho_fixed=rho_fixed, tol=self.tol,
                                  maxiter=self.maxiter,
                                  max_backtracks=self.max_backtracks,
                                  verbose=verbose)

    def solve(self, system, dos, v_left, v_right, guess=None, rho_fixed=None,
              verbose=True):
        """
        Solve the nonlinear Poisson equation for given boundary potentials.

        Parameters
        ----------
        system: Builder
            The discretized system.
        dos: DosModel
            The charge model.
        v_left, v_right: floats
            Potential on the semiconductor and gate sides [V].
        guess: numpy array of floats
            Starting point of the solver, a linear profile if None.
        rho_fixed: numpy array of floats
            Additional charge density independent of the potential.
        verbose: boolean
            Log every Newton step if True.

        Returns
        -------
        v: numpy array of floats
            The electrostatic potential. NonConvergence is raised if no
            solution could be found.
        """
        if guess is None:
            guess = np.linspace(v_left, v_right, system.nx)
        nlp = self.make_solver(system, dos, rho_fixed=rho_fixed, verbose=verbose)
        return nlp.apply(guess, v_left, v_right)

    def sweep(self, system, dos, params, verbose=True):
        """
        Solve the nonlinear Poisson equation for the gate voltages of a
        simulation. Each voltage starts from the solution of the previous one
        shifted by a linear ramp of the voltage increment. The semiconductor
        side is held at Ea - Wf and the gate at Ea - Wf + V.

        Parameters
        ----------
        system: Builder
            The discretized system.
        dos: DosModel
            The charge model.
        params: ParamList
            Simulation parameters (work function, affinity, bias sweep).
        verbose: boolean
            Log every Newton step if True.

        Returns
        -------
        points: list of BiasPoint
            One point per applied voltage. If the solver fails, NonConvergence
            is raised and its attribute points holds the voltages already
            solved.
        """
        voltages = params.sweep.voltages
        v_ref = params.Ea - params.Wf
        nlp = self.make_solver(system, dos, verbose=verbose)

        points = []
        v = None
        for idx, vapp in enumerate(voltages):
            logging.info("Applied voltage: {0} V".format(vapp))

            if idx == 0:
                guess = np.linspace(v_ref, v_ref + vapp, system.nx)
            else:
                guess = v + np.linspace(0, vapp - voltages[idx-1], system.nx)

            try:
                v = nlp.apply(guess, v_ref, v_ref + vapp)
            except NonConvergence as exc:
                logging.error("The solver failed to converge for the applied "
                              "voltage {0} V (index {1}).".format(vapp, idx))
                exc.points = points
                raise

            rho = dos.charge(v) * system.semiconductor_nodes
            points.append(BiasPoint(vapp, v.copy(), rho,
                                    observables.capacitance(nlp, v),
                                    observables.gate_charge(nlp, v),
                                    observables.trapped_charge(system, rho),
                                    nlp.iterations))
        return points


default = Solver()
solve = default.solve
sweep = default.sweep
