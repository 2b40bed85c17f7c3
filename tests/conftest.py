import numpy as np
import pytest

from dosextraction.params import ParamList, FIELDS, SHORT_FIELDS, load_settings


# a 30 nm semiconductor on a 100 nm insulator with a single Gaussian component
ROW = {'simulationNo': 1, 't_semic': 30e-9, 't_ins': 100e-9, 'eps_semic': 3.,
       'eps_ins': 3.9, 'Wf': 4.8, 'Ea': 4.5,
       'N0': 1e25, 'sigma': 4.,
       'N0_2': 0., 'sigma_2': 2., 'shift_2': 0.2,
       'N0_3': 0., 'sigma_3': 2., 'shift_3': -0.2,
       'N0_4': 0., 'sigma_4': 2., 'shift_4': 0.4,
       'N0_exp': 1e25, 'lambda_exp': 3.,
       'A_semic': 1e-6, 'C_sb': 0.,
       'nNodes': 40, 'nSteps': 5, 'V_min': -2., 'V_max': 2.}


@pytest.fixture
def row():
    return [ROW[f] for f in FIELDS]


@pytest.fixture
def make_params():
    def factory(**kwargs):
        mapping = dict(ROW)
        mapping.update(kwargs)
        return ParamList.from_mapping(mapping)
    return factory


@pytest.fixture
def settings():
    # small quadrature rule to keep the tests fast
    return load_settings()._replace(quadrature_order=31)


class ConstantCharge():
    """Charge density independent of the potential."""

    def __init__(self, rho):
        self.rho = rho

    def total_charge(self, phi):
        phi = np.asarray(phi, dtype=float)
        return np.full(phi.shape, self.rho), np.zeros(phi.shape)

    def charge(self, phi):
        return self.total_charge(phi)[0]


@pytest.fixture
def constant_charge():
    return ConstantCharge


@pytest.fixture
def short_row():
    return [ROW[f] for f in SHORT_FIELDS]
