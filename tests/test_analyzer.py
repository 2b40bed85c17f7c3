import numpy as np
import pytest

from dosextraction.analyzer import Analyzer
from dosextraction.solvers import BiasPoint


@pytest.fixture
def simulated():
    V = np.linspace(-2, 2, 81)
    return V, 1. + np.tanh(V)


class TestAnalyzer:

    def test_scaling(self, simulated):
        V, C = simulated
        az = Analyzer(V, C, A_semic=2., C_sb=0.5)
        assert np.allclose(az.C, 2 * C + 0.5)
        assert az.C_acc == C.max()
        assert az.dC.shape == V.shape

    def test_shifted_curve(self, simulated):
        V, C = simulated
        # same curve measured 0.3 V lower, on a wider grid, in random order
        V_exp = np.linspace(-3, 1.5, 91)
        C_exp = 1. + np.tanh(V_exp + 0.3)
        order = np.random.RandomState(0).permutation(V_exp.size)

        fit = Analyzer(V, C).fit(V_exp[order], C_exp[order], center_of_mass=1e-9)
        assert np.isclose(fit.V_shift, 0.3)
        assert fit.error_L2 < 1e-6
        assert fit.center_of_mass == 1e-9
        assert np.all(np.diff(fit.V_exp) > 0)
        assert np.allclose(fit.V_sim, V - fit.V_shift)

    def test_distance(self, simulated):
        V, C = simulated
        fit = Analyzer(V, C).fit(V, C + 0.1)
        assert fit.V_shift == 0
        assert np.isclose(fit.error_L2, 0.1 * np.sqrt(4.))
        # derivatives are equal
        assert np.isclose(fit.error_H1, fit.error_L2)

    def test_from_points(self):
        points = [BiasPoint(V, None, None, 1e-3 * (1 + V), 0., 0., 1)
                  for V in (0., 1., 2.)]
        az = Analyzer.from_points(points, A_semic=1e-6)
        assert np.allclose(az.V, [0, 1, 2])
        assert np.allclose(az.C, [1e-9, 2e-9, 3e-9])
        assert np.allclose(az.dC, 1e-9)
