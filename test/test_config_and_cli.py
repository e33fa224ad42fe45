import logging
import warnings
from dataclasses import asdict

import numpy as np
import pytest
import yaml

from metaTransform.cli.argument_parser import comma_separated_items, parse_arguments
from metaTransform.config.model_configs import HYPERPARAMETER_GRIDS, get_param_grid
from metaTransform.main import main
from metaTransform.models import ModelFactory, RandomForestClassifier, SVMClassifier
from metaTransform.pipelines.run import _build_config
from metaTransform.utils.config import Config, ConfigManager, TRANSFORMATION_TAGS


class TestConfig:

    def test_defaults(self):
        config = Config()
        config.validate()
        assert config.transformations == TRANSFORMATION_TAGS
        assert config.splits == 10
        assert config.train_fraction == 0.8
        assert config.models == ["SVM", "RF"]
        assert config.batch_correction_mode == "separate"

    @pytest.mark.parametrize("field,value", [
        ("transformations", ["CLR", "VST"]),
        ("models", ["XGB"]),
        ("splits", 0),
        ("train_fraction", 1.0),
        ("batch_correction_mode", "combat"),
        ("condition_class", "Control"),
    ])
    def test_invalid(self, field, value):
        config = Config()
        setattr(config, field, value)
        with pytest.raises(ValueError):
            config.validate()

    def test_yaml_round_trip(self, tmp_path):
        manager = ConfigManager().update_config(splits=3, transformations=["CLR", "ILR"],
                                                param_grids={"RF": {"n_estimators": [50]}})
        path = tmp_path / "config.yaml"
        manager.save_to_file(path)

        loaded = ConfigManager().load_from_file(path).get_config()
        assert loaded.splits == 3
        assert loaded.transformations == ["CLR", "ILR"]
        assert loaded.param_grids == {"RF": {"n_estimators": [50]}}

    def test_json_round_trip(self, tmp_path):
        path = tmp_path / "config.json"
        ConfigManager().update_config(seed=7).save_to_file(path)
        assert ConfigManager().load_from_file(path).get_config().seed == 7

    def test_update_ignores_none(self):
        config = ConfigManager().update_config(splits=None, seed=5).get_config()
        assert config.splits == 10
        assert config.seed == 5

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("splits = 3\n")
        with pytest.raises(ValueError):
            ConfigManager().load_from_file(path)

    def test_unknown_key_ignored(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text("verbose: true\nsplits: 4\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            config = ConfigManager().load_from_file(path).get_config()
        assert config.splits == 4
        assert not hasattr(config, "verbose")
        assert "Unknown configuration key: verbose" in caplog.text
        assert "verbose" not in asdict(config)


class TestModelConfigs:

    def test_grid_override(self):
        assert get_param_grid("SVM") == HYPERPARAMETER_GRIDS["SVM"]
        assert get_param_grid("SVM", {"SVM": {"C": [2.0]}}) == {"C": [2.0]}
        assert get_param_grid("RF", {"SVM": {"C": [2.0]}}) == HYPERPARAMETER_GRIDS["RF"]

    def test_unknown_model(self):
        with pytest.raises(ValueError):
            get_param_grid("XGB")
        with pytest.raises(ValueError):
            ModelFactory.create_model("XGB")

    def test_factory(self):
        svm = ModelFactory.create_model("SVM", random_state=1)
        rf = ModelFactory.create_model("rf", random_state=1)
        assert isinstance(svm, SVMClassifier) and svm.calibration_folds == 5
        assert isinstance(rf, RandomForestClassifier) and rf.random_state == 1


class TestSVMClassifier:

    def test_calibrated_probabilities_without_deprecated_option(self, dataset):
        svm = SVMClassifier(random_state=0)
        with warnings.catch_warnings():
            warnings.simplefilter("error", FutureWarning)
            svm.fit(dataset.abundance, dataset.labels.to_numpy())
            proba = svm.predict_proba(dataset.abundance)

        assert "probability" not in svm.get_params()
        assert proba.shape == (dataset.n_samples, 2)
        assert np.allclose(proba.sum(axis=1), 1.0)
        assert list(svm.classes_) == [0, 1]

    def test_calibration_folds_capped_by_smallest_class(self):
        rng = np.random.RandomState(0)
        X = rng.rand(12, 4)
        y = np.array([0] * 9 + [1] * 3)
        svm = SVMClassifier(calibration_folds=5).fit(X, y)
        assert svm.calibration_folds_ == 3


class TestArgumentParser:

    def test_comma_separated_items(self):
        assert comma_separated_items("CLR, ILR,,ALR") == ["CLR", "ILR", "ALR"]
        assert comma_separated_items("") == []

    def test_run_command(self):
        args = parse_arguments([
            "run", "--profile", "p.tsv", "--metadata", "m.csv",
            "--transformations", "CLR,ILR", "--splits", "3", "--batch_correction", "none",
        ])
        assert args.command == "run"
        assert args.transformations == ["CLR", "ILR"]
        assert args.splits == 3
        assert args.seed is None

    def test_command_line_overrides_config_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"splits": 5, "seed": 11, "top_k": 10}), encoding="utf-8")
        args = parse_arguments([
            "run", "--profile", "p.tsv", "--metadata", "m.csv", "--config", str(path),
            "--splits", "2", "--batch_correction", "train_fit", "--cpu", "2",
        ])
        config = _build_config(args)
        assert config.splits == 2
        assert config.seed == 11
        assert config.top_k == 10
        assert config.batch_correction_mode == "train_fit"
        assert config.n_jobs == 2


class TestMain:

    def test_missing_input_exit_code(self, tmp_path):
        code = main(["run", "--profile", str(tmp_path / "missing.tsv"),
                     "--metadata", str(tmp_path / "missing.csv")])
        assert code == 2

    def test_invalid_setting_exit_code(self, tmp_path):
        code = main(["run", "--profile", "p.tsv", "--metadata", "m.csv", "--transformations", "VST"])
        assert code == 3
