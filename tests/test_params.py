import pickle
import numpy as np
import pytest
import scipy.constants as cts

from dosextraction.params import (ParamList, InvalidParameter, FIELDS,
                                  SHORT_FIELDS, load_settings)
from dosextraction.quadrature import UnknownVariant


kT = cts.k * 300.


class TestParamList:

    def test_full_row(self, row):
        params = ParamList.from_row(row)
        assert params.simulationNo == 1
        assert params.geometry.t_semic == 30e-9
        assert params.geometry.eps_ins == 3.9
        assert len(params.components) == 4
        # spreads are given in units of kT
        assert np.isclose(params.components[0].sigma, 4 * kT)
        assert params.components[0].shift == 0
        assert params.components[1].shift == 0.2
        assert np.isclose(params.exponential.sigma, 3 * kT)
        assert params.A_semic == 1e-6
        assert params.sweep.nNodes == 40
        assert isinstance(params.sweep.nNodes, int)

    def test_short_row(self, short_row):
        params = ParamList.from_row(short_row)
        assert params.exponential is None
        assert params.A_semic == 1.
        assert params.C_sb == 0.
        assert len(params.components) == 4

    def test_row_length(self, row):
        with pytest.raises(InvalidParameter):
            ParamList.from_row(row[:-1])

    def test_voltages(self, make_params):
        params = make_params(nSteps=5, V_min=-2., V_max=2.)
        assert np.allclose(params.sweep.voltages, [-2, -1, 0, 1, 2])

    def test_minimal_mapping(self, row):
        mapping = dict(zip(FIELDS, row))
        for key in ['N0_2', 'sigma_2', 'shift_2', 'N0_3', 'sigma_3', 'shift_3',
                    'N0_4', 'sigma_4', 'shift_4', 'N0_exp', 'lambda_exp',
                    'A_semic', 'C_sb']:
            del mapping[key]
        params = ParamList.from_mapping(mapping)
        assert len(params.components) == 1
        assert params.exponential is None

    def test_missing_sigma(self, row):
        mapping = dict(zip(FIELDS, row))
        del mapping['sigma_3']
        with pytest.raises(InvalidParameter):
            ParamList.from_mapping(mapping)

    @pytest.mark.parametrize('key', ['t_semic', 'Wf', 'nNodes', 'V_max'])
    def test_missing_required(self, row, key):
        mapping = dict(zip(FIELDS, row))
        del mapping[key]
        with pytest.raises(InvalidParameter):
            ParamList.from_mapping(mapping)

    @pytest.mark.parametrize('key, value', [
        ('t_semic', 0.), ('t_ins', -1e-9), ('eps_semic', 0.), ('nNodes', 3),
        ('nNodes', 10.5), ('nSteps', 0), ('N0', -1.), ('sigma', 0.),
        ('sigma_2', -1.), ('A_semic', 0.), ('V_min', float('nan')),
        ('Wf', 'abc'), ('simulationNo', -1)])
    def test_invalid_values(self, make_params, key, value):
        with pytest.raises(InvalidParameter):
            make_params(**{key: value})

    def test_zero_density_any_spread(self, make_params):
        params = make_params(N0=0., sigma=0.)
        assert params.components[0].N0 == 0

    def test_string_values(self, row):
        params = ParamList.from_row([str(v) for v in row])
        assert params.sweep.nSteps == 5
        assert params.Wf == 4.8

    def test_immutable_and_picklable(self, make_params):
        params = make_params()
        with pytest.raises(AttributeError):
            params.Wf = 5.
        assert pickle.loads(pickle.dumps(params)) == params


class TestSettings:

    def test_defaults(self):
        settings = load_settings()
        assert settings.quadrature_method == 'golub-welsch'
        assert settings.quadrature_order == 101
        assert settings.dos_model == 'gaussian'
        assert settings.maxiter == 100
        assert settings.tol == 1e-8
        assert settings.experimental_file is None
        assert settings.params is None
        assert settings.simulate_all

    def test_read_file(self, tmp_path):
        config = tmp_path / 'config.ini'
        config.write_text("[Input]\n"
                          "params = data/params.csv\n"
                          "experimental = cv.csv\n"
                          "simulate_all = False\n"
                          "indexes = 2, 3\n"
                          "[QuadratureRule]\n"
                          "method = Newton\n"
                          "nNodes = 51\n"
                          "[DOS]\n"
                          "model = Exponential\n"
                          "[NLP]\n"
                          "tolerance = 1e-10\n"
                          "[Run]\n"
                          "nProcesses = 2\n")
        settings = load_settings(str(config))
        assert settings.params_file == str(tmp_path / 'data' / 'params.csv')
        assert settings.experimental_file == str(tmp_path / 'cv.csv')
        assert settings.output_directory == str(tmp_path / 'output')
        assert not settings.simulate_all
        assert settings.indexes == (2, 3)
        assert settings.quadrature_method == 'newton'
        assert settings.quadrature_order == 51
        assert settings.dos_model == 'exponential'
        assert settings.tol == 1e-10
        assert settings.processes == 2

    def test_params_section(self, tmp_path):
        config = tmp_path / 'config.ini'
        config.write_text("[Params]\n" +
                          "".join("{0} = {1}\n".format(k, v) for k, v in
                                  zip(SHORT_FIELDS, range(1, 23))))
        settings = load_settings(str(config))
        assert settings.params['nNodes'] == '19'
        assert settings.params['N0_2'] == '10'

    @pytest.mark.parametrize('section, option, value', [
        ('QuadratureRule', 'method', 'simpson'),
        ('DOS', 'model', 'uniform'),
        ('Output', 'fmt', 'hdf5')])
    def test_unknown_variants(self, tmp_path, section, option, value):
        config = tmp_path / 'config.ini'
        config.write_text("[{0}]\n{1} = {2}\n".format(section, option, value))
        with pytest.raises(UnknownVariant):
            load_settings(str(config))

    @pytest.mark.parametrize('section, option, value', [
        ('QuadratureRule', 'nNodes', 'many'),
        ('NLP', 'maxIterationsNo', '0'),
        ('NLP', 'tolerance', '-1'),
        ('Input', 'has_headers', 'perhaps')])
    def test_invalid_settings(self, tmp_path, section, option, value):
        config = tmp_path / 'config.ini'
        config.write_text("[{0}]\n{1} = {2}\n".format(section, option, value))
        with pytest.raises(InvalidParameter):
            load_settings(str(config))

    def test_no_selection(self, tmp_path):
        config = tmp_path / 'config.ini'
        config.write_text("[Input]\nsimulate_all = no\n")
        with pytest.raises(InvalidParameter):
            load_settings(str(config))

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_settings(str(tmp_path / 'missing.ini'))
