import numpy as np
import pandas as pd
import pytest

from metaTransform.data.loader import LoadedDataset

N_SAMPLES = 40
N_TAXA = 12


def make_lineage(i):
    return f"k__Bacteria|p__Firmicutes|c__Clostridia|o__Eubacteriales|f__Lachnospiraceae|g__Genus{i}|s__Genus{i}_species"


def generate_abundance(n_samples=N_SAMPLES, n_taxa=N_TAXA, seed=42, zero_fraction=0.3):
    """Dirichlet relative abundances with sparse zeros and a condition signal in the first taxa."""
    rng = np.random.RandomState(seed)
    samples = [f"SRR{1000 + i}" for i in range(n_samples)]
    labels = np.array([0, 1] * (n_samples // 2))

    data = rng.dirichlet(np.ones(n_taxa), size=n_samples)
    data[labels == 1, :3] *= 4.0
    mask = rng.rand(n_samples, n_taxa) < zero_fraction
    # 保证每个样本至少有一个非零物种
    mask[:, -1] = False
    data[mask] = 0.0
    data = data / data.sum(axis=1, keepdims=True) * 100

    abundance = pd.DataFrame(data, index=samples, columns=[make_lineage(i) for i in range(1, n_taxa + 1)])
    labels = pd.Series(labels, index=samples, name="label")
    return abundance, labels


@pytest.fixture
def abundance_and_labels():
    return generate_abundance()


@pytest.fixture
def dataset(abundance_and_labels):
    abundance, labels = abundance_and_labels
    projects = ["PRJNA1"] * (len(labels) // 2) + ["PRJNA2"] * (len(labels) - len(labels) // 2)
    batch = pd.Series(pd.Categorical(projects), index=labels.index, name="BioProject")
    metadata = pd.DataFrame({
        "CaseStatus": np.where(labels == 1, "Case", "Control"),
        "BioProject": projects,
    }, index=labels.index)
    return LoadedDataset(abundance=abundance, metadata=metadata, labels=labels, batch=batch)


@pytest.fixture
def fast_grids():
    return {
        "SVM": {"C": [1.0]},
        "RF": {"n_estimators": [25], "max_features": ["sqrt"]},
    }
