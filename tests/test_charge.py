import numpy as np
import pytest
import scipy.constants as cts

from dosextraction import charge, quadrature
from dosextraction.charge import make_distribution, density, UnknownVariant
from dosextraction.dos import DosModel
from dosextraction.params import ParamList, InvalidParameter


kT = cts.k * 300.


class TestDistribution:

    def test_case_insensitive_names(self):
        dist = make_distribution('Gaussian', 1e24, 3 * kT, order=11)
        assert dist.kind == 'gaussian'
        assert dist.rule.kind == 'hermite'
        dist = make_distribution('EXPONENTIAL', 1e24, 3 * kT, order=11)
        assert dist.rule.kind == 'laguerre'

    def test_unknown_variant(self):
        with pytest.raises(UnknownVariant):
            make_distribution('lorentzian', 1e24, kT)

    def test_rule_mismatch(self):
        rule = quadrature.gauss_laguerre(11)
        with pytest.raises(ValueError):
            make_distribution('gaussian', 1e24, kT, rule=rule)

    def test_reexported_error(self):
        assert charge.UnknownVariant is quadrature.UnknownVariant


class TestDensity:

    @pytest.mark.parametrize('name', ['gaussian', 'exponential'])
    def test_zero_density_scale(self, name):
        dist = make_distribution(name, 0., 5 * kT, shift=0.7, order=21)
        phi = np.linspace(-5, 5, 11)
        rho, drho = density(dist, phi)
        assert np.all(rho == 0)
        assert np.all(drho == 0)

    def test_half_filled_gaussian(self):
        # symmetric levels around the Fermi level are half occupied
        N0 = 1e25
        dist = make_distribution('gaussian', N0, 4 * kT, order=51)
        rho, _ = density(dist, 0.)
        assert np.isclose(rho, -cts.e * N0 / 2, rtol=1e-12)

    @pytest.mark.parametrize('name', ['gaussian', 'exponential'])
    def test_extreme_potentials(self, name):
        N0 = 1e25
        dist = make_distribution(name, N0, 4 * kT, order=51)
        rho, drho = density(dist, np.array([-1e3, 1e3]))
        assert np.all(np.isfinite(rho))
        assert np.all(np.isfinite(drho))
        # empty far below, full far above
        assert abs(rho[0]) < 1e-100
        assert np.isclose(rho[1], -cts.e * N0, rtol=1e-10)
        assert np.allclose(drho, 0)

    @pytest.mark.parametrize('name', ['gaussian', 'exponential'])
    def test_derivative(self, name):
        dist = make_distribution(name, 1e25, 3 * kT, shift=0.1, order=61)
        phi = np.linspace(-0.3, 0.4, 15)
        h = 1e-6
        _, drho = density(dist, phi)
        rho_p, _ = density(dist, phi + h)
        rho_m, _ = density(dist, phi - h)
        fd = (rho_p - rho_m) / (2 * h)
        assert np.allclose(drho, fd, rtol=1e-5, atol=1e-8 * np.abs(drho).max())

    def test_sign(self):
        dist = make_distribution('gaussian', 1e25, 3 * kT, order=31)
        rho, drho = density(dist, np.linspace(-1, 1, 21))
        assert np.all(rho <= 0)
        assert np.all(drho <= 0)

    def test_shift(self):
        phi = np.linspace(-0.5, 0.5, 9)
        base = make_distribution('gaussian', 1e25, 3 * kT, order=31)
        shifted = base._replace(shift=0.2)
        assert np.allclose(density(shifted, phi)[0], density(base, phi + 0.2)[0])

    def test_half_filled_at_opposite_shift(self):
        # a positive shift moves the centre of the component down, the
        # Gaussian is half filled at phi = -shift
        dist = make_distribution('gaussian', 1e25, 3 * kT, shift=0.3, order=41)
        rho, _ = density(dist, -0.3)
        assert np.isclose(rho, -cts.e * 0.5e25, rtol=1e-8)
        rho_0, _ = density(dist, 0.)
        # nearly full at phi = 0
        assert rho_0 < 1.9 * rho

    def test_scalar_input(self):
        dist = make_distribution('exponential', 1e25, 3 * kT, order=31)
        rho, drho = density(dist, 0.1)
        assert np.ndim(rho) == 0
        assert np.ndim(drho) == 0


class TestDosModel:

    def test_single_component(self, make_params):
        # components with N0 = 0 contribute nothing, whatever their shift
        params = make_params(N0_2=0., N0_3=0., N0_4=0.)
        dos = DosModel.from_params(params, order=41)
        assert len(dos.components) == 4
        phi = np.linspace(-2, 2, 41)
        rho, drho = dos.total_charge(phi)
        rho1, drho1 = density(dos.components[0], phi)
        assert np.array_equal(rho, rho1)
        assert np.array_equal(drho, drho1)

    def test_superposition(self, make_params):
        params = make_params(N0_2=3e24, shift_2=0.3)
        dos = DosModel.from_params(params, order=41)
        phi = np.linspace(-1, 1, 21)
        expected = density(dos.components[0], phi)[0] + \
                   density(dos.components[1], phi)[0]
        assert np.allclose(dos.charge(phi), expected, rtol=1e-14)

    def test_shared_rule(self, make_params):
        dos = DosModel.from_params(make_params(), order=21)
        assert all(c.rule is dos.components[0].rule for c in dos.components)

    def test_exponential_model(self, make_params):
        params = make_params()
        dos = DosModel.from_params(params, model='exponential', order=21)
        assert len(dos.components) == 1
        assert dos.components[0].kind == 'exponential'
        assert dos.components[0].sigma == params.exponential.sigma

    def test_missing_exponential(self, short_row):
        params = ParamList.from_row(short_row)
        with pytest.raises(InvalidParameter):
            DosModel.from_params(params, model='exponential', order=21)

    def test_unknown_model(self, make_params):
        with pytest.raises(UnknownVariant):
            DosModel.from_params(make_params(), model='uniform')

    def test_empty_model(self):
        with pytest.raises(InvalidParameter):
            DosModel([])

