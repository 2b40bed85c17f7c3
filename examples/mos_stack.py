import dosextraction
import numpy as np
import scipy.constants as cts

from dosextraction.params import ParamList, Geometry, DosComponent, Sweep

kT = cts.k * 300  # thermal energy [J]

# 30 nm organic semiconductor on 100 nm of insulator [m]
geometry = Geometry(t_semic=30e-9, t_ins=100e-9, eps_semic=3.0, eps_ins=3.9)

# Gaussian density of states: density [m^-3], spread [J], shift [eV]
components = [DosComponent(1e27, 4 * kT, 0.),
              DosComponent(5e26, 3 * kT, 0.3)]

# 200 mesh nodes, gate bias from -4 V to 4 V in 81 steps
params = ParamList(1, geometry, Wf=4.8, Ea=4.5, components=components,
                   sweep=Sweep(200, 81, -4., 4.))

# Create the system and the density of states
sys = dosextraction.layered_stack(params.geometry, params.sweep.nNodes)
dos = dosextraction.DosModel.from_params(params, order=101)

# Solve the nonlinear Poisson equation for every gate voltage
points = dosextraction.sweep(sys, dos, params, verbose=False)

V = np.array([p.V for p in points])
C = np.array([p.capacitance for p in points])
dosextraction.save_sim(sys, points, 'mos_stack.gzip')
np.savetxt('mos_stack_cv.txt', np.column_stack((V, C)))

try:
    import matplotlib.pyplot as plt
    plt.plot(V, C * 1e3, '-o')
    plt.xlabel('Gate voltage [V]')
    plt.ylabel('Capacitance [mF/m^2]')
    plt.grid()
    plt.show()

except ImportError:
    print("Matplotlib not installed, can't make plot")
