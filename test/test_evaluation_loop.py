import numpy as np
import pandas as pd
import pytest

from metaTransform.core.base import (
    DataIntegrityError,
    EvaluationConfig,
    ResultStatus,
    TransformationState,
    UndefinedMetricError,
)
from metaTransform.core.evaluation_loop import EvaluationLoop
from metaTransform.core.hyperparameter_tuner import HyperparameterTunerFactory
from metaTransform.evaluation.feature_importance import FeatureImportanceAggregator
from metaTransform.models import RandomForestClassifier
from metaTransform.preprocessing.transformations import TransformationBank


def make_loop(fast_grids, **overrides):
    params = dict(splits=3, cv_folds=3, random_state=7, param_grids=fast_grids)
    params.update(overrides)
    return EvaluationLoop(EvaluationConfig(**params))


@pytest.fixture
def transformed(dataset):
    return TransformationBank().transform_all(dataset.abundance, include=["TSS", "CLR", "ILR"])


def test_every_cell_gets_an_auc(dataset, transformed, fast_grids):
    outcome = make_loop(fast_grids).run(transformed, dataset.labels, dataset.batch)
    results = outcome.results_frame()

    assert len(results) == 3 * 3 * 2
    assert (results["status"] == ResultStatus.OK.value).all()
    assert results["auc"].between(0, 1).all()
    assert set(results["split"]) == {1, 2, 3}
    assert set(results["model"]) == {"SVM", "RF"}
    assert list(dict.fromkeys(results["transformation"])) == ["TSS", "CLR", "ILR"]
    assert outcome.evaluated() == ["TSS", "CLR", "ILR"]


def test_models_are_kept_per_transformation(dataset, transformed, fast_grids):
    outcome = make_loop(fast_grids).run(transformed, dataset.labels, dataset.batch)
    rf = outcome.models_for("CLR", "RF")
    assert [a.split for a in rf] == [1, 2, 3]
    assert rf[0].feature_names == list(transformed["CLR"].columns)
    assert rf[0].estimator.feature_importances_.shape == (transformed["CLR"].shape[1],)


def test_partitions_are_stratified_and_reproducible(dataset, transformed, fast_grids):
    first = make_loop(fast_grids).run(transformed, dataset.labels, dataset.batch)
    second = make_loop(fast_grids).run(transformed, dataset.labels, dataset.batch)
    assert first.partitions == second.partitions

    for train_ids, test_ids in first.partitions["TSS"]:
        assert len(test_ids) == 8
        assert not set(train_ids) & set(test_ids)
        assert dataset.labels.loc[test_ids].nunique() == 2

    pd.testing.assert_frame_equal(first.results_frame(), second.results_frame())


def test_different_seed_gives_different_partitions(dataset, transformed, fast_grids):
    a = make_loop(fast_grids, models=["RF"]).run(transformed, dataset.labels, dataset.batch)
    b = make_loop(fast_grids, models=["RF"], random_state=8).run(transformed, dataset.labels, dataset.batch)
    assert a.partitions["TSS"] != b.partitions["TSS"]


def test_degenerate_transformation_is_skipped(dataset, transformed, fast_grids):
    matrices = {"CONST": pd.DataFrame(1.0, index=dataset.labels.index, columns=["x", "y"])}
    matrices.update(transformed)
    outcome = make_loop(fast_grids, splits=1).run(matrices, dataset.labels, dataset.batch)
    results = outcome.results_frame()

    assert outcome.states["CONST"] == TransformationState.SKIPPED
    assert outcome.skipped() == ["CONST"]
    assert "CONST" not in set(results["transformation"])
    assert len(results) == 3 * 1 * 2


def test_rows_are_matched_by_sample_id(dataset, transformed, fast_grids):
    shuffled = {name: m.iloc[::-1] for name, m in transformed.items()}
    a = make_loop(fast_grids, splits=1).run(transformed, dataset.labels, dataset.batch)
    b = make_loop(fast_grids, splits=1).run(shuffled, dataset.labels, dataset.batch)
    pd.testing.assert_frame_equal(a.results_frame(), b.results_frame())


def test_mismatched_sample_ids_raise(dataset, transformed, fast_grids):
    broken = {"TSS": transformed["TSS"].iloc[1:]}
    with pytest.raises(DataIntegrityError):
        make_loop(fast_grids).run(broken, dataset.labels, dataset.batch)


@pytest.fixture
def minority_design():
    # 8 vs 2: a 2-sample stratified test split always gets two controls
    rng = np.random.RandomState(3)
    ids = [f"s{i}" for i in range(10)]
    X = pd.DataFrame(rng.rand(10, 5), index=ids, columns=[f"f{i}" for i in range(5)])
    labels = pd.Series([0] * 8 + [1] * 2, index=ids)
    batch = pd.Series(["B1"] * 10, index=ids)
    return X, labels, batch


def test_single_class_test_partition_is_flagged(minority_design, fast_grids):
    X, labels, batch = minority_design
    outcome = make_loop(fast_grids, splits=2).run({"TSS": X}, labels, batch)
    results = outcome.results_frame()

    assert len(results) == 4
    assert (results["status"] == ResultStatus.UNDEFINED_AUC.value).all()
    assert results["auc"].isna().all()
    assert outcome.results.ok_frame().empty


def test_single_class_test_partition_can_raise(minority_design, fast_grids):
    X, labels, batch = minority_design
    loop = make_loop(fast_grids, splits=1, undefined_auc_policy="raise")
    with pytest.raises(UndefinedMetricError):
        loop.run({"TSS": X}, labels, batch)


def test_invalid_settings_rejected(fast_grids):
    with pytest.raises(ValueError):
        make_loop(fast_grids, splits=0)
    with pytest.raises(ValueError):
        make_loop(fast_grids, models=["XGB"])
    with pytest.raises(ValueError):
        make_loop(fast_grids, undefined_auc_policy="ignore")


def test_fit_failure_is_isolated_per_transformation(dataset, transformed, fast_grids):
    broken = transformed["TSS"].copy()
    broken.iloc[0] = np.nan
    matrices = {"BROKEN": broken, "CLR": transformed["CLR"]}
    outcome = make_loop(fast_grids).run(matrices, dataset.labels, dataset.batch)
    results = outcome.results_frame()

    failed = results[results["transformation"] == "BROKEN"]
    assert len(failed) == 3 * 2
    assert (failed["status"] == ResultStatus.FIT_FAILED.value).all()
    assert failed["auc"].isna().all()
    assert (failed["message"].str.len() > 0).all()

    healthy = results[results["transformation"] == "CLR"]
    assert len(healthy) == 3 * 2
    assert (healthy["status"] == ResultStatus.OK.value).all()
    assert healthy["auc"].between(0, 1).all()

    assert outcome.evaluated() == ["BROKEN", "CLR"]
    assert outcome.models["BROKEN"] == []


def test_models_failing_at_scoring_are_not_ranked(dataset, transformed, fast_grids):
    healthy = make_loop(fast_grids, splits=1).run({"TSS": transformed["TSS"]}, dataset.labels, dataset.batch)
    _, test_ids = healthy.partitions["TSS"][0]

    # 只有测试集中的一个样本无法打分，训练本身成功
    broken = transformed["TSS"].copy()
    broken.loc[test_ids[0]] = np.nan
    outcome = make_loop(fast_grids, splits=1).run({"TSS": broken}, dataset.labels, dataset.batch)
    results = outcome.results_frame()

    assert outcome.partitions["TSS"] == healthy.partitions["TSS"]
    assert (results["status"] == ResultStatus.FIT_FAILED.value).all()
    assert outcome.models_for("TSS", "RF") == []
    assert outcome.models_for("TSS", "SVM") == []

    table = FeatureImportanceAggregator().top_features_table(outcome.models, top_k=5)
    assert "TSS" not in table.columns
    assert len(healthy.models_for("TSS", "RF")) == 1


@pytest.mark.parametrize("method", ["grid", "random"])
def test_search_raises_on_failing_candidate(dataset, method):
    tuner = HyperparameterTunerFactory.create_tuner(method, cv_folds=3, random_state=1)
    with pytest.raises(ValueError):
        tuner.tune(RandomForestClassifier(random_state=1), dataset.abundance, dataset.labels.to_numpy(),
                   {"n_estimators": [10, 0]})
