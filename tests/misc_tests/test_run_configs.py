import matplotlib
matplotlib.use("Agg")

import json
import os

import numpy as np
import pandas as pd
import pytest
import yaml

from pydtd.config_files.dict_config_utils import CURRENT_STATE, GENERAL_PAGE, ANALYSIS_PAGE
from pydtd.config_files.config_dictionaries import (
    dict_config_training, ANALYSIS_TYPE, TRAINING_ANALYSIS_TYPE, CROSS_VALIDATION_ANALYSIS_TYPE,
    REFERENCE_FILE, MIXTURES_FILE, TRUTH_FILE, OUTPUT_DIRECTORY, PROJECT_NAME, LAMBDA_TAG,
    ESTIMATOR_MODE, FISTA_CONFIGS, MAX_ITERATIONS, STOP_THRESHOLD, INITIAL_STEP_SIZE, SAVE_G_PATH_PLOT,
    LAMBDA_SEQUENCE, NUMBER_OF_FOLDS, SEED, START_VALUE
)
from pydtd.core_functionality.cross_validation import CrossValidationResult
from pydtd.core_functionality.exceptions import DataError
from pydtd.core_functionality.training_result import TrainingResult
from pydtd.main import main
from pydtd.run_configs.base_run_config import BaseRunConfig
from pydtd.run_configs.cross_validation_run_config import CrossValidationRunConfig
from pydtd.run_configs.overall_run_config import OverallRunConfig
from pydtd.run_configs.training_run_config import TrainingRunConfig


@pytest.fixture
def data_files(tmp_path):
    rng = np.random.default_rng(13)
    genes = [f"gene{i}" for i in range(12)]
    samples = [f"mix{j}" for j in range(8)]
    x = pd.DataFrame(rng.uniform(0.5, 5.0, (12, 2)), index=genes, columns=["T", "B"])
    c = pd.DataFrame(rng.uniform(0.1, 1.0, (2, 8)), index=["T", "B"], columns=samples)
    y = x.to_numpy() @ c.to_numpy() + rng.normal(0, 0.3, (12, 8))
    y = pd.DataFrame(y, index=genes, columns=samples)

    paths = {name: str(tmp_path / f"{name}.csv") for name in ("reference", "mixtures", "truth")}
    x.to_csv(paths["reference"])
    y.iloc[::-1].to_csv(paths["mixtures"])
    c.to_csv(paths["truth"])
    return paths


def write_yaml(path, analysis_page, data_files, output_directory, **general):
    general_page = {
        REFERENCE_FILE: data_files["reference"],
        MIXTURES_FILE: data_files["mixtures"],
        TRUTH_FILE: data_files["truth"],
        OUTPUT_DIRECTORY: str(output_directory),
        PROJECT_NAME: "demo",
    }
    general_page.update(general)
    with open(path, "w") as file:
        yaml.safe_dump({GENERAL_PAGE: general_page, ANALYSIS_PAGE: analysis_page}, file, sort_keys=False)
    return str(path)


@pytest.fixture
def training_yaml(tmp_path, data_files):
    analysis_page = {
        ANALYSIS_TYPE: TRAINING_ANALYSIS_TYPE,
        LAMBDA_TAG: 0.0001,
        ESTIMATOR_MODE: "direct",
        FISTA_CONFIGS: {MAX_ITERATIONS: 5},
        SAVE_G_PATH_PLOT: True,
    }
    return write_yaml(tmp_path / "training.yaml", analysis_page, data_files, tmp_path)


@pytest.fixture
def cross_validation_yaml(tmp_path, data_files):
    analysis_page = {
        ANALYSIS_TYPE: CROSS_VALIDATION_ANALYSIS_TYPE,
        LAMBDA_SEQUENCE: [0.0, 0.01],
        NUMBER_OF_FOLDS: 2,
        SEED: 0,
        FISTA_CONFIGS: {MAX_ITERATIONS: 3},
    }
    return write_yaml(tmp_path / "cv.yaml", analysis_page, data_files, tmp_path)


class TestReadConfig:

    def test_clean_yaml_is_converted(self, training_yaml):
        """Test that a clean YAML config is wrapped into the GUI format"""
        config = BaseRunConfig.read_config_file(training_yaml)
        assert config[ANALYSIS_PAGE][LAMBDA_TAG] == {CURRENT_STATE: 0.0001}
        assert config[ANALYSIS_PAGE][FISTA_CONFIGS][CURRENT_STATE][MAX_ITERATIONS] == {CURRENT_STATE: 5}

    def test_unsupported_extension(self, tmp_path):
        """Test that only YAML and JSON files are read"""
        path = tmp_path / "config.txt"
        path.write_text("General_Page: {}")
        with pytest.raises(ValueError, match="Unsupported file extension"):
            BaseRunConfig.read_config_file(str(path))

    def test_missing_general_page(self, tmp_path):
        """Test that a config without general page is refused"""
        path = tmp_path / "config.yaml"
        path.write_text("Analysis_Page:\n  lambda: 0.1\n")
        with pytest.raises(ValueError, match=GENERAL_PAGE):
            BaseRunConfig.read_config_file(str(path))


class TestOverallRunConfig:

    def test_training_dispatch(self, training_yaml):
        """Test that a training config gets the training run config"""
        run_config = OverallRunConfig.from_file(training_yaml)
        assert isinstance(run_config.run_config, TrainingRunConfig)
        assert run_config.project_file == "demo"

    def test_cross_validation_dispatch(self, cross_validation_yaml):
        """Test that a cross validation config gets the cross validation run config"""
        run_config = OverallRunConfig.from_file(cross_validation_yaml)
        assert isinstance(run_config.run_config, CrossValidationRunConfig)

    def test_unknown_analysis_type(self, tmp_path, data_files):
        """Test that an unknown analysis type raises ValueError"""
        path = write_yaml(tmp_path / "bad.yaml", {ANALYSIS_TYPE: "Simulation"}, data_files, tmp_path)
        with pytest.raises(ValueError, match="does not have an implementation"):
            OverallRunConfig.from_file(path)

    def test_missing_analysis_type(self, tmp_path, data_files):
        """Test that a config without analysis type raises ValueError"""
        path = write_yaml(tmp_path / "bad.yaml", {LAMBDA_TAG: 0.1}, data_files, tmp_path)
        with pytest.raises(ValueError, match=ANALYSIS_TYPE):
            OverallRunConfig.from_file(path)

    def test_save_config(self, training_yaml, tmp_path):
        """Test that the project file is written to the output directory"""
        run_config = OverallRunConfig.from_file(training_yaml)
        file_location = run_config.save_config()
        assert file_location == os.path.join(str(tmp_path), "demo.json")
        with open(file_location) as json_file:
            saved = json.load(json_file)
        assert saved[ANALYSIS_PAGE][ANALYSIS_TYPE][CURRENT_STATE] == TRAINING_ANALYSIS_TYPE


class TestTrainingRunConfig:

    def test_training(self, training_yaml, tmp_path):
        """Test training from a YAML config, including the g path plot"""
        run_config = OverallRunConfig.from_file(training_yaml)
        run_config.load_data()
        result = run_config.perform_analysis()

        assert isinstance(result, TrainingResult)
        assert result.feature_names == [f"gene{i}" for i in range(12)]
        assert result.iterations <= 5
        assert result.lambda_parameter == pytest.approx(0.0001)
        assert os.path.exists(tmp_path / "demo_g_path.png")

    def test_missing_truth_file(self, tmp_path, data_files):
        """Test that training without truth file raises DataError"""
        path = write_yaml(tmp_path / "no_truth.yaml", {ANALYSIS_TYPE: TRAINING_ANALYSIS_TYPE},
                          data_files, tmp_path, **{TRUTH_FILE: ""})
        run_config = TrainingRunConfig(BaseRunConfig.read_config_file(path))
        with pytest.raises(DataError, match="truth file"):
            run_config.perform_analysis()

    def test_fista_settings_from_yaml(self, tmp_path, data_files):
        """Test reading the FISTA settings, with exponent floats and the estimated step size"""
        path = tmp_path / "settings.yaml"
        write_yaml(path, {ANALYSIS_TYPE: TRAINING_ANALYSIS_TYPE}, data_files, tmp_path)
        with open(path, "a") as file:
            file.write(f"  {FISTA_CONFIGS}:\n    {STOP_THRESHOLD}: 1e-8\n    {INITIAL_STEP_SIZE}: -1\n")
        run_config = TrainingRunConfig(BaseRunConfig.read_config_file(str(path)))

        config = run_config._fista_config(dict_config_training)
        assert config.stop_threshold == pytest.approx(1e-8)
        assert config.initial_step_size is None
        assert config.max_iterations == 500

    def test_start_value(self, tmp_path, data_files):
        """Test that a given start value reaches the optimizer"""
        analysis_page = {
            ANALYSIS_TYPE: TRAINING_ANALYSIS_TYPE,
            START_VALUE: [0.5] * 12,
            FISTA_CONFIGS: {MAX_ITERATIONS: 1, STOP_THRESHOLD: 0.0},
        }
        path = write_yaml(tmp_path / "start.yaml", analysis_page, data_files, tmp_path)
        result = TrainingRunConfig(BaseRunConfig.read_config_file(path)).perform_analysis()
        np.testing.assert_array_equal(result.history[:, 0], np.full(12, 0.5))


class TestCrossValidationRunConfig:

    def test_cross_validation(self, cross_validation_yaml, capsys):
        """Test lambda cross validation from a YAML config"""
        run_config = OverallRunConfig.from_file(cross_validation_yaml)
        run_config.load_data()
        result = run_config.perform_analysis()

        assert isinstance(result, CrossValidationResult)
        assert result.fold_losses.shape == (2, 2)
        assert result.best_lambda in (0.0, 0.01)
        assert "Best lambda" in capsys.readouterr().out


class TestWriteConfig:

    def test_yaml_round_trip(self, training_yaml, tmp_path):
        """Test writing a config to YAML and reading it back"""
        run_config = TrainingRunConfig(BaseRunConfig.read_config_file(training_yaml))
        output_path = str(tmp_path / "copy.yaml")
        run_config.write_config(output_path)

        with open(training_yaml) as original, open(output_path) as copy:
            assert yaml.safe_load(copy) == yaml.safe_load(original)

    def test_json_round_trip(self, training_yaml, tmp_path):
        """Test writing a config to JSON and reading it back"""
        run_config = TrainingRunConfig(BaseRunConfig.read_config_file(training_yaml))
        output_path = str(tmp_path / "copy.json")
        run_config.write_config(output_path)

        assert BaseRunConfig.read_config_file(output_path) == run_config.dict_config

    def test_clean_json(self, training_yaml, tmp_path):
        """Test writing a clean JSON config"""
        run_config = TrainingRunConfig(BaseRunConfig.read_config_file(training_yaml))
        output_path = str(tmp_path / "clean.json")
        run_config.write_json_clean(output_path)

        with open(output_path) as file:
            clean = json.load(file)
        assert clean[ANALYSIS_PAGE][FISTA_CONFIGS] == {MAX_ITERATIONS: 5}

    def test_unsupported_extension(self, training_yaml, tmp_path):
        """Test that writing to an unknown format raises ValueError"""
        run_config = TrainingRunConfig(BaseRunConfig.read_config_file(training_yaml))
        with pytest.raises(ValueError):
            run_config.write_config(str(tmp_path / "copy.txt"))


class TestMain:

    def test_main_runs_analysis(self, training_yaml, capsys):
        """Test the command line entry point"""
        assert main([training_yaml]) == 0
        assert "Analysis complete." in capsys.readouterr().out

    def test_main_without_arguments(self, capsys):
        """Test that the usage is printed without arguments"""
        assert main([]) == 1
        assert "Usage" in capsys.readouterr().out

    def test_main_missing_file(self, tmp_path, capsys):
        """Test that a missing config file is reported"""
        assert main([str(tmp_path / "missing.yaml")]) == 1
        assert "ERROR" in capsys.readouterr().out
