# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

import csv
import numpy as np
import gzip
import pickle
from scipy.io import savemat

import logging


class MalformedRecord(ValueError):
    """
    A row of a table that could not be read.

    Attributes
    ----------
    lineno: integer
        Line number of the row in the file (starting at 1).
    """
    def __init__(self, msg, lineno=None):
        super().__init__(msg)
        self.lineno = lineno


# candidate field separators, whitespace is used if none is found
DELIMITERS = [',', '\t', ';', ':']


def isfloat(value):
    try:
        float(value)
        return True
    except ValueError:
        return False


def _delimiter(line):
    for sep in DELIMITERS:
        if sep in line:
            return sep
    return None


def _parse_row(line, delimiter, lineno, ncols, min_cols):
    fields = [s.strip() for s in line.strip().split(delimiter)]
    if ncols is not None:
        widths = (ncols,) if isinstance(ncols, int) else tuple(ncols)
        if len(fields) not in widths:
            raise MalformedRecord("line {0}: expected {1} values, got {2}"\
                   .format(lineno, ' or '.join(str(w) for w in widths),
                           len(fields)), lineno)
    if len(fields) < min_cols:
        raise MalformedRecord("line {0}: expected at least {1} values, got {2}"\
                              .format(lineno, min_cols, len(fields)), lineno)
    for field in fields:
        if not isfloat(field):
            raise MalformedRecord("line {0}: '{1}' is not a number"\
                                  .format(lineno, field), lineno)
    return np.array([float(field) for field in fields])


def read_table(filename, has_headers=True, ncols=None, min_cols=1):
    """
    Read a table of numbers. The field separator (comma, tab, semicolon, colon
    or whitespace) is detected on the first data row. Rows that cannot be
    read are skipped and reported, the other rows are kept.

    Parameters
    ----------
    filename: string
        Name of the file.
    has_headers: boolean
        Skip the first line of the file if True.
    ncols: integer or list of integers
        Accepted numbers of values per row, any number if None.
    min_cols: integer
        Minimum number of values per row.

    Returns
    -------
    rows: list of numpy arrays of floats
        The rows read successfully, in file order.
    errors: list of tuples (integer, MalformedRecord)
        Line number and error of every skipped row.
    """
    rows, errors = [], []
    delimiter = None
    with open(filename, 'r') as f:
        for lineno, line in enumerate(f, 1):
            if has_headers and lineno == 1:
                continue
            if not line.strip():
                continue
            if delimiter is None and not rows and not errors:
                delimiter = _delimiter(line)
            try:
                rows.append(_parse_row(line, delimiter, lineno, ncols, min_cols))
            except MalformedRecord as exc:
                logging.warning("Skipping row of {0}: {1}".format(filename, exc))
                errors.append((lineno, exc))
    return rows, errors


def read_cv(filename, has_headers=True):
    """
    Read a measured capacitance-voltage curve: voltages [V] in the first
    column, capacitances [F] in the second one.

    Returns
    -------
    V, C: numpy arrays of floats
    """
    rows, _ = read_table(filename, has_headers=has_headers, min_cols=2)
    if len(rows) == 0:
        raise MalformedRecord("No capacitance-voltage data in {0}."\
                              .format(filename))
    data = np.array([row[:2] for row in rows])
    return data[:, 0], data[:, 1]


def write_cv(filename, V_sim, C_sim, dC_sim, V_exp=None, C_exp=None,
             dC_exp=None):
    """
    Write the simulated (and measured) capacitance-voltage curves. The file has
    the columns V_experim, C_experim, dC/dV_experim, V_simulated, C_simulated,
    dC/dV_simulated; cells of the shorter curve are left empty.
    """
    if V_exp is None:
        V_exp = C_exp = dC_exp = []
    n = max(len(V_sim), len(V_exp))
    with open(filename, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['V_experim', 'C_experim', 'dC/dV_experim',
                         'V_simulated', 'C_simulated', 'dC/dV_simulated'])
        for i in range(n):
            row = ['', '', '']
            if i < len(V_exp):
                row = ['{0:.15e}'.format(x) for x in (V_exp[i], C_exp[i], dC_exp[i])]
            if i < len(V_sim):
                row += ['{0:.15e}'.format(x) for x in (V_sim[i], C_sim[i], dC_sim[i])]
            else:
                row += ['', '', '']
            writer.writerow(row)


def write_profiles(filename, xpts, points):
    """
    Write the potential profiles of a bias sweep, one row per mesh node. The
    first column is the position, the following ones the potential at each
    applied voltage.
    """
    data = np.column_stack([xpts] + [p.v for p in points])
    header = ', '.join(['x'] + ['V={0:g}'.format(p.V) for p in points])
    np.savetxt(filename, data, delimiter=', ', header=header, comments='')


def deriv(y, x):
    """
    Derivative of y with respect to x with centered differences, forward and
    backward differences at the ends.
    """
    y = np.asarray(y, dtype=float)
    x = np.asarray(x, dtype=float)
    if x.size < 2 or x.shape != y.shape:
        raise ValueError("deriv needs two arrays of same size with at least two "
                         "values.")
    dy = np.zeros_like(y)
    dy[0] = (y[1] - y[0]) / (x[1] - x[0])
    dy[1:-1] = (y[2:] - y[:-2]) / (x[2:] - x[:-2])
    dy[-1] = (y[-1] - y[-2]) / (x[-1] - x[-2])
    return dy


def interp1(x, y, x_new):
    # linear interpolation, nan outside of the range of x
    return np.interp(x_new, x, y, left=np.nan, right=np.nan)


def save_sim(sys, results, filename, fmt='gzip'):
    """
    Utility function that saves a system together with simulation results.

    Parameters
    ----------
    sys: Builder
        The discretized system.
    results: list of BiasPoint
        The solution of every applied voltage.
    filename: string
        Name of outputfile
    fmt: string
        Format of output file, set to 'mat' for matlab files. With the default
        gzip format, the Builder object is pickled directly.
    """

    if fmt == 'mat':
        system = {'xpts': sys.xpts, 'epsilon': sys.epsilon,
                  'semiconductor': sys.semiconductor.astype(float)}
        data = {'V': np.array([p.V for p in results]),
                'v': np.array([p.v for p in results]),
                'rho': np.array([p.rho for p in results]),
                'capacitance': np.array([p.capacitance for p in results]),
                'charge': np.array([p.charge for p in results]),
                'trapped': np.array([p.trapped for p in results]),
                'iterations': np.array([p.iterations for p in results])}
        savemat(filename, {'sys': system, 'results': data}, do_compression=True)
    else:
        with gzip.GzipFile(filename, 'wb') as f:
            f.write(pickle.dumps((sys, list(results))))


def load_sim(filename):
    """
    Utility function that loads a system together with simulation results.

    Parameters
    ----------
    filename: string
        Name of inputfile

    Returns
    -------
    system: Builder object
        A discretized system.
    results: list of BiasPoint
        The solution of every applied voltage.
    """

    with gzip.GzipFile(filename, 'rb') as f:
        data = f.read()
    sys, results = pickle.loads(data)
    return sys, results
