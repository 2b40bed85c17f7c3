# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

import os
import time
import argparse
import multiprocessing as mp
import scipy.constants as cts
from collections import namedtuple

from .params import ParamList, InvalidParameter, load_settings
from .quadrature import UnknownVariant
from .builder import layered_stack
from .dos import DosModel
from .solvers import Solver, NonConvergence
from .analyzer import Analyzer
from . import observables
from . import utils
from . import plotter

import logging

__all__ = ['run', 'run_batch', 'load_param_lists', 'main']


# result of one simulation: parameters, discretized system, converged bias
# points, comparison with the measured curve (None without measurement) and
# the error that stopped the sweep (None if all voltages converged)
Simulation = namedtuple('Simulation', ['params', 'system', 'points', 'fit',
                                       'error'])

# status of one simulation of a batch
Summary = namedtuple('Summary', ['simulationNo', 'success', 'nPoints',
                                 'message'])


def run(params, settings, experimental=None, output_directory=None,
        verbose=False):
    """
    Run a simulation: bias sweep of the stack described by params, comparison
    with a measured capacitance-voltage curve and output files.

    Parameters
    ----------
    params: ParamList
        Simulation parameters.
    settings: Settings
        Numerical settings (quadrature, DOS model, Newton solver, output).
    experimental: tuple of numpy arrays of floats
        Measured voltages and capacitances, optional.
    output_directory: string
        Directory of the output files, nothing is written if None.
    verbose: boolean
        Log every Newton step if True.

    Returns
    -------
    simulation: Simulation
        Named tuple with fields params, system, points, fit, error. If the
        Newton solver fails, the bias points converged before the failure are
        kept and processed, and error holds the NonConvergence exception.
    """
    start = time.time()
    logging.info("Simulation No. {0} started.".format(params.simulationNo))

    system = layered_stack(params.geometry, params.sweep.nNodes)
    dos = DosModel.from_params(params, model=settings.dos_model,
                               order=settings.quadrature_order,
                               method=settings.quadrature_method,
                               maxiter=settings.quadrature_maxiter,
                               tol=settings.quadrature_tol)
    solver = Solver(tol=settings.tol, maxiter=settings.maxiter)

    error = None
    try:
        points = solver.sweep(system, dos, params, verbose=verbose)
    except NonConvergence as exc:
        logging.error("Simulation No. {0} stopped after {1} bias point(s): {2}"\
                      .format(params.simulationNo, len(exc.points), exc))
        points, error = exc.points, exc

    fit = None
    if experimental is not None and len(points) > 1:
        s = system.semiconductor_sites
        dens = -points[-1].rho[s] / cts.e
        com = observables.charge_center_of_mass(system.xpts[s], dens)
        fit = Analyzer.from_points(points, params.A_semic, params.C_sb)\
                      .fit(experimental[0], experimental[1], com)

    if output_directory is not None and len(points) > 0:
        write_output(output_directory, params, system, points, fit, settings)

    logging.info("Simulation No. {0} took {1:.1f} seconds."\
                 .format(params.simulationNo, time.time() - start))
    return Simulation(params, system, points, fit, error)


def write_output(output_directory, params, system, points, fit, settings):
    """
    Write the files of a simulation in output_directory, with names starting
    with output_<simulationNo>: potential profiles (_profiles.csv),
    capacitance-voltage curves (_CV.csv), saved results (.gzip or .mat) and
    figures (.pdf) when plotting is enabled.
    """
    name = os.path.join(output_directory,
                        'output_{0}'.format(params.simulationNo))

    utils.write_profiles(name + '_profiles.csv', system.xpts, points)

    if fit is not None:
        utils.write_cv(name + '_CV.csv', fit.V_sim, fit.C_sim, fit.dC_sim,
                       fit.V_exp, fit.C_exp, fit.dC_exp)
    elif len(points) > 1:
        az = Analyzer.from_points(points, params.A_semic, params.C_sb)
        utils.write_cv(name + '_CV.csv', az.V, az.C, az.dC)

    if settings.fmt == 'mat':
        utils.save_sim(system, points, name + '.mat', fmt='mat')
    else:
        utils.save_sim(system, points, name + '.gzip')

    if settings.plot:
        plotter.plot_profiles(system, points, filename=name + '_profiles.pdf')
        if fit is not None:
            plotter.plot_cv(fit, filename=name + '_CV.pdf')


def load_param_lists(settings):
    """
    Read the parameters of the simulations selected by the settings: the
    [Params] section of the configuration file if present, otherwise the rows
    of the parameters file (all of them, or the 1-based indexes given).

    Returns
    -------
    param_lists: list of ParamList
    """
    if settings.params is not None:
        return [ParamList.from_mapping(settings.params)]

    rows, errors = utils.read_table(settings.params_file,
                                    has_headers=settings.has_headers,
                                    ncols=(22, 26))
    if errors:
        logging.warning("{0} row(s) of {1} skipped."\
                        .format(len(errors), settings.params_file))

    if settings.simulate_all:
        selected = rows
    else:
        selected = []
        for idx in settings.indexes:
            if not 1 <= idx <= len(rows):
                raise InvalidParameter("Index {0} out of range, {1} contains "
                                       "{2} row(s).".format(idx,
                                       settings.params_file, len(rows)))
            selected.append(rows[idx-1])

    if len(selected) == 0:
        raise InvalidParameter("No simulation to run.")
    return [ParamList.from_row(row) for row in selected]


def run_single_job(job):
    """Execute a single simulation and return its Summary."""
    params, settings, experimental, output_directory, verbose = job
    try:
        sim = run(params, settings, experimental, output_directory, verbose)
    except Exception as exc:
        logging.exception("Simulation No. {0} failed."\
                          .format(params.simulationNo))
        return Summary(params.simulationNo, False, 0, str(exc))

    if sim.error is not None:
        return Summary(params.simulationNo, False, len(sim.points),
                       str(sim.error))
    return Summary(params.simulationNo, True, len(sim.points), '')


def run_batch(param_lists, settings, experimental=None, output_directory=None,
              processes=1, verbose=False):
    """
    Run independent simulations, in parallel worker processes if processes is
    larger than 1. A failed simulation does not stop the others.

    Returns
    -------
    summaries: list of Summary
        Named tuples with fields simulationNo, success, nPoints, message, in
        the order of param_lists.
    """
    jobs = [(params, settings, experimental, output_directory, verbose)
            for params in param_lists]

    processes = min(processes, len(jobs))
    if processes <= 1:
        return [run_single_job(job) for job in jobs]

    logging.info("Running {0} simulations on {1} processes"\
                 .format(len(jobs), processes))
    with mp.Pool(processes=processes) as pool:
        summaries = pool.map(run_single_job, jobs)
    return summaries


def main(argv=None):
    """
    Command line entry point. Returns the exit status: 0 if every simulation
    succeeded, 1 otherwise.
    """
    parser = argparse.ArgumentParser(
        prog='dosextraction',
        description="Simulate the capacitance-voltage response of a "
                    "semiconductor/insulator stack with a Gaussian or "
                    "exponential density of trap states.")
    parser.add_argument('-f', '--file', default='config.ini',
                        help="configuration file (default: config.ini)")
    parser.add_argument('-j', '--processes', type=int, default=None,
                        help="number of worker processes (overrides nProcesses)")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="log every Newton step")
    parser.add_argument('-q', '--quiet', action='store_true',
                        help="only log warnings and errors")
    args = parser.parse_args(argv)

    level = logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')

    try:
        settings = load_settings(args.file)
        param_lists = load_param_lists(settings)
        experimental = None
        if settings.experimental_file is not None:
            experimental = utils.read_cv(settings.experimental_file,
                                         has_headers=settings.has_headers)
    except (OSError, InvalidParameter, UnknownVariant,
            utils.MalformedRecord) as exc:
        logging.error(str(exc))
        return 1

    output_directory = settings.output_directory
    if output_directory is not None:
        os.makedirs(output_directory, exist_ok=True)

    processes = settings.processes if args.processes is None else args.processes
    summaries = run_batch(param_lists, settings, experimental, output_directory,
                          processes=max(1, processes), verbose=args.verbose)

    failed = [s for s in summaries if not s.success]
    for s in failed:
        logging.error("Simulation No. {0} failed after {1} bias point(s): {2}"\
                      .format(s.simulationNo, s.nPoints, s.message))
    if not failed:
        logging.info("Simulation complete!")
    return 1 if failed else 0
