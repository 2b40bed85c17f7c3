import os
import numpy as np
import pytest

from dosextraction import simulate, utils
from dosextraction.params import FIELDS


def write_params(filename, rows):
    with open(filename, 'w') as f:
        f.write(','.join(FIELDS) + '\n')
        for row in rows:
            f.write(','.join(str(v) for v in row) + '\n')


class TestRun:

    def test_outputs(self, tmp_path, make_params, settings):
        params = make_params(simulationNo=7)
        sim = simulate.run(params, settings, output_directory=str(tmp_path))
        assert sim.error is None
        assert len(sim.points) == params.sweep.nSteps
        assert sim.fit is None
        for name in ['output_7_profiles.csv', 'output_7_CV.csv', 'output_7.gzip']:
            assert (tmp_path / name).exists()

        system, points = utils.load_sim(str(tmp_path / 'output_7.gzip'))
        assert np.array_equal(system.xpts, sim.system.xpts)
        assert len(points) == len(sim.points)

    def test_mat_output(self, tmp_path, make_params, settings):
        settings = settings._replace(fmt='mat', dos_model='exponential')
        simulate.run(make_params(), settings, output_directory=str(tmp_path))
        assert (tmp_path / 'output_1.mat').exists()

    def test_fit(self, make_params, settings):
        params = make_params(nSteps=9)
        sim = simulate.run(params, settings)
        V = np.array([p.V for p in sim.points])
        C = np.array([p.capacitance for p in sim.points]) * params.A_semic

        # measured curve identical to the simulated one, 0.2 V higher
        sim = simulate.run(params, settings, experimental=(V + 0.2, C))
        assert np.isclose(sim.fit.V_shift, -0.2)
        assert sim.fit.error_L2 < 1e-6 * C.max()
        assert sim.fit.center_of_mass < 0

    def test_failure(self, tmp_path, make_params, settings):
        settings = settings._replace(maxiter=1)
        sim = simulate.run(make_params(), settings,
                           output_directory=str(tmp_path))
        assert sim.error is not None
        assert sim.points == []
        assert os.listdir(str(tmp_path)) == []

    def test_plots(self, tmp_path, make_params, settings):
        matplotlib = pytest.importorskip('matplotlib')
        matplotlib.use('Agg')
        params = make_params(nSteps=5)
        sim = simulate.run(params, settings)
        experimental = ([p.V for p in sim.points],
                        [p.capacitance * params.A_semic for p in sim.points])
        simulate.run(params, settings._replace(plot=True), experimental,
                     output_directory=str(tmp_path))
        assert (tmp_path / 'output_1_profiles.pdf').exists()
        assert (tmp_path / 'output_1_CV.pdf').exists()


class TestBatch:

    def test_failed_simulation_does_not_stop_others(self, make_params,
                                                   settings):
        param_lists = [make_params(simulationNo=1),
                       make_params(simulationNo=2, N0=0.)]
        # a charge free stack still needs two Newton steps
        summaries = simulate.run_batch(param_lists,
                                       settings._replace(maxiter=1))
        assert [s.simulationNo for s in summaries] == [1, 2]
        assert not any(s.success for s in summaries)

        summaries = simulate.run_batch(param_lists, settings)
        assert all(s.success for s in summaries)
        assert [s.nPoints for s in summaries] == [5, 5]

    def test_load_param_lists(self, tmp_path, row, short_row, settings):
        filename = str(tmp_path / 'params.csv')
        write_params(filename, [row, row[:-3], short_row])
        settings = settings._replace(params_file=filename, simulate_all=False,
                                     indexes=(2,))
        param_lists = simulate.load_param_lists(settings)
        # indexes count the rows that could be read
        assert len(param_lists) == 1
        assert param_lists[0].exponential is None

        with pytest.raises(simulate.InvalidParameter):
            simulate.load_param_lists(settings._replace(indexes=(3,)))


class TestMain:

    @pytest.fixture
    def config(self, tmp_path, row):
        second = list(row)
        second[0] = 2
        write_params(str(tmp_path / 'params.csv'), [row, second])

        V = np.linspace(-2, 2, 21)
        with open(str(tmp_path / 'cv.csv'), 'w') as f:
            f.write('V,C\n')
            for v in V:
                f.write('{0},{1}\n'.format(v, 1e-11 * (1 + np.tanh(v))))

        config = tmp_path / 'config.ini'
        config.write_text("[Input]\n"
                          "params = params.csv\n"
                          "experimental = cv.csv\n"
                          "[Output]\n"
                          "directory = results\n"
                          "[QuadratureRule]\n"
                          "nNodes = 31\n")
        return config

    @pytest.mark.parametrize('processes', ['1', '2'])
    def test_run(self, tmp_path, config, processes):
        status = simulate.main(['-f', str(config), '-q', '-j', processes])
        assert status == 0
        for n in (1, 2):
            assert (tmp_path / 'results' / 'output_{0}_CV.csv'.format(n)).exists()

    def test_bad_configuration(self, tmp_path, config):
        with open(str(config), 'a') as f:
            f.write("[DOS]\nmodel = uniform\n")
        assert simulate.main(['-f', str(config), '-q']) == 1
        assert not (tmp_path / 'results').exists()

    def test_missing_configuration(self, tmp_path):
        assert simulate.main(['-f', str(tmp_path / 'missing.ini'), '-q']) == 1

    def test_failed_simulation(self, config):
        with open(str(config), 'a') as f:
            f.write("[NLP]\nmaxIterationsNo = 1\n")
        assert simulate.main(['-f', str(config), '-q']) == 1


class TestExamples:

    def test_example_configuration(self):
        config = os.path.join(os.path.dirname(__file__), '..', 'examples',
                              'config.ini')
        settings = simulate.load_settings(config)
        param_lists = simulate.load_param_lists(settings)
        assert [p.simulationNo for p in param_lists] == [1, 2]
        assert len(param_lists[1].components) == 4
        assert settings.processes == 2
