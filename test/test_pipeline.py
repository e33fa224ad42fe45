import json

import numpy as np
import pandas as pd

from conftest import generate_abundance
from metaTransform.core.base import ResultStatus
from metaTransform.data.loader import LoadedDataset
from metaTransform.main import main
from metaTransform.pipelines.run import run_pipeline
from metaTransform.utils.config import Config, TRANSFORMATION_TAGS


def small_config(fast_grids, **overrides):
    params = dict(splits=2, cv_folds=3, seed=3, top_k=5, param_grids=fast_grids)
    params.update(overrides)
    return Config(**params)


def test_run_pipeline_in_memory(dataset, fast_grids):
    config = small_config(fast_grids, transformations=["PA", "TSS", "CLR", "ALR"])
    result = run_pipeline(dataset, config)

    evaluated = result.outcome.evaluated()
    assert set(evaluated) <= {"PA", "TSS", "CLR", "ALR"}
    assert len(result.results) == len(evaluated) * 2 * 2
    assert (result.results["status"] == ResultStatus.OK.value).all()

    assert list(result.top_features.columns) == evaluated
    assert len(result.top_features) == 5
    assert result.top_features.loc[1, "CLR"].startswith("s__")
    assert result.top_features.loc[1, "ALR"].startswith("ALR")
    assert set(result.auc_summary["model"]) == {"SVM", "RF"}
    assert result.output_files is None


def test_run_pipeline_exports(dataset, fast_grids, tmp_path):
    config = small_config(fast_grids, transformations=["TSS", "ILR"], models=["RF"])
    result = run_pipeline(dataset, config, output_dir=tmp_path)

    assert (tmp_path / "auc_results.csv").exists()
    assert (tmp_path / "auc_summary.csv").exists()
    assert (tmp_path / "top5_features.csv").exists()
    assert (tmp_path / "auc_distribution.png").exists()

    summary = json.loads((tmp_path / "run_summary.json").read_text(encoding="utf-8"))
    assert summary["transformations"] == {"TSS": "evaluated", "ILR": "evaluated"}
    assert summary["run_info"]["n_samples"] == dataset.n_samples
    assert summary["run_info"]["batches"] == ["PRJNA1", "PRJNA2"]

    exported = pd.read_csv(tmp_path / "auc_results.csv")
    assert len(exported) == len(result.results) == 2 * 2


def test_cli_end_to_end(dataset, fast_grids, tmp_path):
    profile = dataset.abundance.T
    profile.index.name = "clade_name"
    profile_path = tmp_path / "profile.tsv"
    profile.to_csv(profile_path, sep="\t")

    metadata = dataset.metadata.copy()
    metadata.index.name = "Run"
    metadata_path = tmp_path / "metadata.tsv"
    metadata.to_csv(metadata_path, sep="\t")

    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "cv_folds: 3\n"
        "param_grids:\n"
        "  SVM: {C: [1.0]}\n"
        "  RF: {n_estimators: [25]}\n",
        encoding="utf-8",
    )

    out = tmp_path / "out"
    code = main([
        "run", "--profile", str(profile_path), "--metadata", str(metadata_path),
        "--config", str(config_path), "--output", str(out),
        "--splits", "2", "--transformations", "CLR,ILR",
    ])

    assert code == 0
    results = pd.read_csv(out / "auc_results.csv")
    assert len(results) == 2 * 2 * 2
    assert set(results["transformation"]) == {"CLR", "ILR"}
    assert (out / "config_used.yaml").exists()
    assert (out / "run.log").exists()


def test_twenty_samples_single_batch_all_transformations(fast_grids):
    abundance, labels = generate_abundance(n_samples=20, n_taxa=10, seed=5)
    batch = pd.Series(pd.Categorical(["PRJNA1"] * 20), index=labels.index, name="BioProject")
    dataset = LoadedDataset(abundance=abundance, metadata=pd.DataFrame(index=labels.index),
                            labels=labels, batch=batch)
    config = Config(splits=3, seed=42, param_grids=fast_grids)

    result = run_pipeline(dataset, config)
    results = result.results
    evaluated = result.outcome.evaluated()

    assert len(results) == 3 * 2 * len(evaluated)
    assert set(results["transformation"]) <= set(TRANSFORMATION_TAGS)
    assert set(results["split"]) == {1, 2, 3}
    assert set(results["model"]) == {"SVM", "RF"}
    assert np.isfinite(results["auc"]).all()
    assert results["auc"].between(0, 1).all()
    assert set(evaluated) | set(result.outcome.skipped()) == set(TRANSFORMATION_TAGS)


def test_zero_total_sample_dropped_before_transformation(fast_grids):
    abundance, labels = generate_abundance(n_samples=20, n_taxa=10, seed=5)
    abundance.iloc[0] = 0.0
    batch = pd.Series(pd.Categorical(["PRJNA1"] * 20), index=labels.index, name="BioProject")
    dataset = LoadedDataset(abundance=abundance, metadata=pd.DataFrame(index=labels.index),
                            labels=labels, batch=batch)
    config = Config(splits=3, seed=42, param_grids=fast_grids,
                    transformations=["TSS", "logTSS", "aSIN", "CLR"])

    result = run_pipeline(dataset, config)
    results = result.results

    assert set(result.outcome.evaluated()) == {"TSS", "logTSS", "aSIN", "CLR"}
    assert len(results) == 4 * 3 * 2
    assert (results["status"] == ResultStatus.OK.value).all()
    assert np.isfinite(results["auc"]).all()
    for matrix in result.transformed.values():
        assert "SRR1000" not in matrix.index
        assert len(matrix) == 19
        assert np.isfinite(matrix.to_numpy()).all()
