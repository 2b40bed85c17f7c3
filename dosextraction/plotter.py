# Copyright 2017 University of Maryland.
#
# This file is part of DosExtraction. It is subject to the license terms in the file
# LICENSE.rst found in the top-level directory of this distribution.

try:
    import matplotlib.pyplot as plt
    from matplotlib.figure import Figure
    mpl_enabled = True
except ImportError:
    mpl_enabled = False


def _figure(fig, filename):
    # a new figure is displayed only if it is not saved to a file
    if not mpl_enabled:
        raise RuntimeError("matplotlib was not found, but is required "
                           "for plotting.")
    show = False
    if fig is None:
        if filename is None:
            fig = plt.figure()
            show = True
        else:
            fig = Figure()
    return fig, show


def plot_cv(fit, filename=None, fig=None):
    """
    Plot the measured and simulated capacitance-voltage curves and their
    derivatives.

    Parameters
    ----------
    fit: Fit
        Result of Analyzer.fit.
    filename: string
        The figure is saved to this file if given.
    fig: Maplotlib figure
        A plot is added to it if given. If not given, a new one is created and
        displayed (or only saved if filename is given).

    Returns
    -------
    fig: Matplotlib figure
    """
    fig, show = _figure(fig, filename)

    ax1 = fig.add_subplot(211)
    ax1.plot(fit.V_exp, fit.dC_exp, lw=2, label='Experimental')
    ax1.plot(fit.V_sim, fit.dC_sim, lw=2, label='Simulated')
    ax1.set_ylabel('dC/dV [F/V]')
    ax1.legend(loc='best')
    ax1.set_title('V_shift = {0:.4e} V'.format(fit.V_shift), fontsize=8)

    ax2 = fig.add_subplot(212)
    ax2.plot(fit.V_exp, fit.C_exp, lw=2, label='Experimental')
    ax2.plot(fit.V_sim, fit.C_sim, lw=2, label='Simulated')
    ax2.set_xlabel('V_gate - V_shift [V]')
    ax2.set_ylabel('C [F]')

    if filename is not None:
        fig.savefig(filename)
    if show:
        plt.show()
    return fig


def plot_profiles(system, points, filename=None, fig=None):
    """
    Plot the electrostatic potential across the stack for every applied
    voltage. The length scale of the graph is 1 nanometer.

    Parameters
    ----------
    system: Builder
        The discretized system.
    points: list of BiasPoint
        Result of a bias sweep.
    filename: string
        The figure is saved to this file if given.
    fig: Maplotlib figure
        A plot is added to it if given.

    Returns
    -------
    fig: Matplotlib figure
    """
    fig, show = _figure(fig, filename)
    ax = fig.add_subplot(111)

    x = system.xpts * 1e9
    for p in points:
        ax.plot(x, p.v, label='V = {0:g} V'.format(p.V))
    # material interface
    ax.axvline(0, color='k', linewidth=.5)
    ax.set_xlabel('x [nm]')
    ax.set_ylabel('Potential [V]')
    if 0 < len(points) <= 10:
        ax.legend(loc='best', fontsize=8)

    if filename is not None:
        fig.savefig(filename)
    if show:
        plt.show()
    return fig
