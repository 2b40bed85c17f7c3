# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

import numpy as np
from scipy.linalg import eigh_tridiagonal
from collections import namedtuple

import logging

__all__ = ['QuadratureRule', 'gauss_hermite', 'gauss_laguerre', 'rule',
           'integrate']


# named tuple of a quadrature rule: family name, nodes and weights
QuadratureRule = namedtuple('QuadratureRule', ['kind', 'nodes', 'weights'])


class InvalidOrder(ValueError):
    pass


class UnknownVariant(ValueError):
    pass


class QuadratureError(RuntimeError):
    pass


def _check_order(order):
    if isinstance(order, bool) or not isinstance(order, (int, np.integer)):
        raise InvalidOrder("Quadrature order must be an integer, got {0!r}."\
                           .format(order))
    if order < 1:
        raise InvalidOrder("Quadrature order must be positive, got {0}."\
                           .format(order))
    return int(order)


def _golub_welsch(diagonal, offdiagonal, mu0):
    # nodes are the eigenvalues of the Jacobi matrix, weights come from the
    # first component of the normalized eigenvectors
    if diagonal.size == 1:
        return diagonal.copy(), np.array([mu0])
    nodes, vectors = eigh_tridiagonal(diagonal, offdiagonal)
    weights = mu0 * vectors[0, :]**2
    return nodes, weights


def _hermite_newton(n, maxiter, tol):
    nodes = np.zeros(n)
    weights = np.zeros(n)
    pim4 = np.pi**(-0.25)

    # roots are symmetric about the origin, compute the positive half only,
    # starting from the largest one
    z = 0.
    for i in range((n + 1) // 2):
        if i == 0:
            z = np.sqrt(2.*n + 1) - 1.85575 * (2.*n + 1)**(-0.16667)
        elif i == 1:
            z -= 1.14 * n**0.426 / z
        elif i == 2:
            z = 1.86 * z - 0.86 * nodes[n-1]
        elif i == 3:
            z = 1.91 * z - 0.91 * nodes[n-2]
        else:
            z = 2. * z - nodes[n-i+1]

        for _ in range(maxiter):
            # orthonormal Hermite polynomials by recurrence
            p1, p2 = pim4, 0.
            for k in range(n):
                p3 = p2
                p2 = p1
                p1 = z * np.sqrt(2. / (k+1)) * p2 - np.sqrt(k / (k+1.)) * p3
            dp = np.sqrt(2.*n) * p2
            z_old = z
            z = z_old - p1 / dp
            if abs(z - z_old) <= tol * max(1., abs(z)):
                break
        else:
            raise QuadratureError("Gauss-Hermite root {0}/{1} did not converge "
                                  "in {2} iterations.".format(i+1, n, maxiter))

        nodes[i] = -z
        nodes[n-1-i] = z
        weights[i] = 2. / (dp * dp)
        weights[n-1-i] = weights[i]

    return nodes, weights


def _laguerre_newton(n, maxiter, tol):
    nodes = np.zeros(n)
    weights = np.zeros(n)

    z = 0.
    for i in range(n):
        if i == 0:
            z = 3. / (1 + 2.4 * n)
        elif i == 1:
            z += 15. / (1 + 2.5 * n)
        else:
            ai = i - 1
            z += ((1 + 2.55 * ai) / (1.9 * ai)) * (z - nodes[i-2])

        for _ in range(maxiter):
            p1, p2 = 1., 0.
            for k in range(n):
                p3 = p2
                p2 = p1
                p1 = ((2*k + 1 - z) * p2 - k * p3) / (k + 1)
            dp = n * (p1 - p2) / z
            z_old = z
            z = z_old - p1 / dp
            if abs(z - z_old) <= tol * max(1., abs(z)):
                break
        else:
            raise QuadratureError("Gauss-Laguerre root {0}/{1} did not converge "
                                  "in {2} iterations.".format(i+1, n, maxiter))

        nodes[i] = z
        weights[i] = -1. / (dp * n * p2)

    return nodes, weights


METHODS = ('golub-welsch', 'newton')


def _check_method(method):
    if method not in METHODS:
        raise UnknownVariant("Unknown quadrature method '{0}', expected one of "
                             "{1}.".format(method, ', '.join(METHODS)))


def gauss_hermite(order, method='golub-welsch', maxiter=1000, tol=1e-14):
    r"""
    Gauss-Hermite rule for integrals of the form
    :math:`\int_{-\infty}^{+\infty} f(x) e^{-x^2} dx`.

    Parameters
    ----------
    order: integer
        Number of nodes of the rule. The rule is exact for polynomials of
        degree up to 2*order-1.
    method: string
        'golub-welsch' (default) computes the nodes from the eigenvalues of the
        Jacobi matrix, 'newton' refines each root of the Hermite polynomial
        with Newton iterations.
    maxiter: integer
        Maximum number of Newton iterations per root ('newton' method only).
    tol: float
        Relative tolerance on the roots ('newton' method only).

    Returns
    -------
    rule: QuadratureRule
        Named tuple with fields kind, nodes (ascending), weights.
    """
    n = _check_order(order)
    _check_method(method)

    if method == 'newton':
        nodes, weights = _hermite_newton(n, maxiter, tol)
    else:
        k = np.arange(1, n)
        nodes, weights = _golub_welsch(np.zeros(n), np.sqrt(k / 2.),
                                       np.sqrt(np.pi))
    return QuadratureRule('hermite', nodes, weights)


def gauss_laguerre(order, method='golub-welsch', maxiter=1000, tol=1e-14):
    r"""
    Gauss-Laguerre rule for integrals of the form
    :math:`\int_0^{+\infty} f(x) e^{-x} dx`.

    Parameters
    ----------
    order: integer
        Number of nodes of the rule. The rule is exact for polynomials of
        degree up to 2*order-1.
    method: string
        'golub-welsch' (default) or 'newton'.
    maxiter: integer
        Maximum number of Newton iterations per root ('newton' method only).
    tol: float
        Relative tolerance on the roots ('newton' method only).

    Returns
    -------
    rule: QuadratureRule
        Named tuple with fields kind, nodes (ascending), weights.
    """
    n = _check_order(order)
    _check_method(method)

    if method == 'newton':
        nodes, weights = _laguerre_newton(n, maxiter, tol)
    else:
        k = np.arange(n)
        nodes, weights = _golub_welsch(2.*k + 1, k[1:].astype(float), 1.)
    return QuadratureRule('laguerre', nodes, weights)


_rules = {'hermite': gauss_hermite,
          'gauss-hermite': gauss_hermite,
          'laguerre': gauss_laguerre,
          'gauss-laguerre': gauss_laguerre}


def rule(name, order, method='golub-welsch', maxiter=1000, tol=1e-14):
    """
    Build a quadrature rule from its family name ('hermite' or 'laguerre').
    Unknown names raise UnknownVariant.
    """
    try:
        build = _rules[str(name).lower()]
    except KeyError:
        raise UnknownVariant("Unknown quadrature rule '{0}'.".format(name))
    logging.debug("Building {0} rule with {1} nodes ({2})"\
                  .format(name, order, method))
    return build(order, method=method, maxiter=maxiter, tol=tol)


def integrate(quad, f):
    # weighted sum of f over the nodes of the rule
    return np.sum(quad.weights * f(quad.nodes))
