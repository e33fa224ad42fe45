import numpy as np
import pandas as pd
import pytest

from metaTransform.preprocessing.transformations import (
    TRANSFORMATIONS,
    TransformationBank,
    additive_log_ratio,
    centered_log_ratio,
    isometric_log_ratio,
    robust_centered_log_ratio,
    total_sum_scaling,
)
from metaTransform.utils.config import TRANSFORMATION_TAGS

PSEUDOCOUNT = 1e-6


@pytest.fixture
def small():
    return pd.DataFrame(
        [[10.0, 0.0, 30.0, 60.0],
         [25.0, 25.0, 25.0, 25.0],
         [0.0, 5.0, 0.0, 95.0]],
        index=["a", "b", "c"],
        columns=["s__A", "s__B", "s__C", "s__D"],
    )


def test_registry_covers_all_tags_in_order():
    assert list(TRANSFORMATIONS) == TRANSFORMATION_TAGS


def test_transform_all_keeps_row_index(small):
    outputs = TransformationBank(PSEUDOCOUNT).transform_all(small)
    assert list(outputs) == TRANSFORMATION_TAGS
    for name, matrix in outputs.items():
        assert list(matrix.index) == ["a", "b", "c"], name


def test_presence_absence_is_binary(small):
    pa = TransformationBank().transform(small, "PA")
    assert set(np.unique(pa.to_numpy())) <= {0, 1}
    assert pa.loc["a", "s__B"] == 0
    assert pa.loc["a", "s__A"] == 1


def test_tss_rows_sum_to_one(small):
    tss = total_sum_scaling(small)
    np.testing.assert_allclose(tss.sum(axis=1).to_numpy(), 1.0)


def test_tss_zero_row_is_nan():
    X = pd.DataFrame([[0.0, 0.0], [1.0, 3.0]], index=["z", "n"], columns=["s__A", "s__B"])
    tss = total_sum_scaling(X)
    assert tss.loc["z"].isna().all()
    np.testing.assert_allclose(tss.loc["n"].to_numpy(), [0.25, 0.75])


def test_log_tss_and_asin(small):
    bank = TransformationBank(PSEUDOCOUNT)
    tss = total_sum_scaling(small)
    np.testing.assert_allclose(bank.transform(small, "logTSS").to_numpy(), np.log10(tss.to_numpy() + PSEUDOCOUNT))
    asin = bank.transform(small, "aSIN").to_numpy()
    assert (asin >= 0).all() and (asin <= np.pi / 2).all()


def test_clr_rows_center_on_zero(small):
    clr = centered_log_ratio(small, PSEUDOCOUNT)
    np.testing.assert_allclose(clr.sum(axis=1).to_numpy(), 0.0, atol=1e-8)
    assert list(clr.columns) == list(small.columns)


def test_rclr_matches_clr(small):
    np.testing.assert_allclose(
        robust_centered_log_ratio(small, PSEUDOCOUNT).to_numpy(),
        centered_log_ratio(small, PSEUDOCOUNT).to_numpy(),
        atol=1e-8,
    )


def test_ilr_has_k_minus_one_coordinates(small):
    ilr = isometric_log_ratio(small, PSEUDOCOUNT)
    assert list(ilr.columns) == ["ILR1", "ILR2", "ILR3"]
    assert np.isfinite(ilr.to_numpy()).all()


def test_alr_uses_last_taxon_as_denominator(small):
    alr = additive_log_ratio(small, PSEUDOCOUNT)
    assert list(alr.columns) == ["ALR1", "ALR2", "ALR3"]
    values = small.to_numpy() + PSEUDOCOUNT
    expected = np.log(values[:, :-1] / values[:, [-1]])
    np.testing.assert_allclose(alr.to_numpy(), expected)


def test_ratio_transforms_need_two_taxa():
    X = pd.DataFrame({"s__A": [1.0, 2.0]})
    with pytest.raises(ValueError):
        isometric_log_ratio(X)
    with pytest.raises(ValueError):
        additive_log_ratio(X)


def test_negative_input_rejected(small):
    bad = small.copy()
    bad.iloc[0, 0] = -1.0
    with pytest.raises(ValueError):
        TransformationBank().transform(bad, "CLR")


def test_unknown_tag_rejected(small):
    with pytest.raises(ValueError):
        TransformationBank().transform(small, "VST")


def test_pseudocount_must_be_positive():
    with pytest.raises(ValueError):
        TransformationBank(pseudocount=0)
