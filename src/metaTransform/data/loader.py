"""
Data loading utilities for metaTransform.

Reads a MetaPhlAn-style merged abundance profile and a sample metadata table,
keeps species-level taxa, joins both on the sample identifier and encodes the
class and batch labels.
"""

from typing import List, Optional, Union
import pandas as pd
import numpy as np
from pathlib import Path
from dataclasses import dataclass

from ..core.base import DataIntegrityError
from ..utils.config import Config
from ..utils.logger import get_logger

# Annotation columns that MetaPhlAn writes next to the sample columns
ANNOTATION_COLUMNS = ("NCBI_tax_id", "clade_taxid", "additional_species")


@dataclass
class LoadedDataset:
    """Abundance matrix and metadata sharing one sample index."""
    abundance: pd.DataFrame
    metadata: pd.DataFrame
    labels: pd.Series
    batch: pd.Series

    @property
    def n_samples(self) -> int:
        return self.abundance.shape[0]

    @property
    def n_taxa(self) -> int:
        return self.abundance.shape[1]

    def drop_samples(self, sample_ids: List[str]) -> 'LoadedDataset':
        """Copy without the given samples; every table keeps the same row order."""
        keep = ~self.abundance.index.isin(sample_ids)
        return LoadedDataset(
            abundance=self.abundance.loc[keep],
            metadata=self.metadata.loc[self.metadata.index.isin(self.abundance.index[keep])],
            labels=self.labels.loc[keep],
            batch=self.batch.loc[keep],
        )


def empty_samples(abundance: pd.DataFrame) -> List[str]:
    """Samples whose abundances sum to zero (undefined under TSS and its derivatives)."""
    return abundance.index[abundance.sum(axis=1) == 0].tolist()


class DataLoader:
    """Data loader for microbiome profiles and sample metadata."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self.logger = get_logger("DataLoader")

    def load_data(self,
                  profile_path: Union[str, Path],
                  metadata_path: Union[str, Path]) -> LoadedDataset:
        """
        Load and join the two input tables.

        Args:
            profile_path: Tab-delimited profile with a lineage column and one column per sample
            metadata_path: Delimited metadata table

        Returns:
            LoadedDataset restricted to samples present in both tables and in the two classes
        """
        self.logger.info(f"Loading data from {profile_path} and {metadata_path}")
        abundance = self.load_profile(profile_path)
        metadata = self.load_metadata(metadata_path)
        return self.assemble(abundance, metadata)

    def load_profile(self, path: Union[str, Path]) -> pd.DataFrame:
        """
        Read a comment-prefixed profile and return species-level abundances
        as samples x taxa.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Profile file not found: {path}")

        taxon_col = self.config.taxon_col
        skip = self._count_comment_lines(path, taxon_col)
        profile = pd.read_csv(path, sep='\t', skiprows=skip, dtype=str)
        profile.columns = [str(c).lstrip('#').strip() for c in profile.columns]

        if taxon_col not in profile.columns:
            raise DataIntegrityError(f"Profile has no '{taxon_col}' column: {list(profile.columns)[:5]}")
        self.logger.info(f"Loaded profile: {profile.shape[0]} clades x {profile.shape[1] - 1} columns")

        return self.profile_to_species_matrix(profile)

    def profile_to_species_matrix(self, profile: pd.DataFrame) -> pd.DataFrame:
        """Species rows of a clade table, transposed to samples x taxa."""
        taxon_col = self.config.taxon_col
        lineage = profile[taxon_col].astype(str).str.strip()

        # 只保留种水平 (s__)，排除菌株水平 (t__)
        last_rank = lineage.str.split('|').str[-1]
        species_mask = last_rank.str.startswith('s__') & ~lineage.str.contains('t__', regex=False)
        species = profile.loc[species_mask.to_numpy()].copy()
        species.index = lineage[species_mask].to_numpy()
        self.logger.info(f"Species-level taxa: {len(species)} of {len(profile)} clades")

        if species.index.has_duplicates:
            dupes = species.index[species.index.duplicated()].unique().tolist()
            raise DataIntegrityError(f"Duplicate species in profile: {dupes[:3]}")

        sample_cols = [c for c in species.columns if c != taxon_col and c not in ANNOTATION_COLUMNS]
        matrix = species[sample_cols].apply(pd.to_numeric, errors='coerce').T
        matrix.index = [self._strip_suffix(str(s)) for s in matrix.index]
        matrix.index.name = self.config.sample_id_col
        matrix.columns.name = None

        if matrix.index.has_duplicates:
            dupes = matrix.index[matrix.index.duplicated()].unique().tolist()
            raise DataIntegrityError(f"Duplicate sample ids in profile: {dupes[:3]}")

        # 含无法解析数值的样本整体丢弃
        bad_samples = matrix.index[matrix.isna().any(axis=1)].tolist()
        if bad_samples:
            self.logger.warning(f"Dropping {len(bad_samples)} samples with unparseable abundances: {bad_samples[:5]}")
            matrix = matrix.drop(index=bad_samples)

        negative = matrix.index[(matrix < 0).any(axis=1)].tolist()
        if negative:
            self.logger.warning(f"Dropping {len(negative)} samples with negative abundances: {negative[:5]}")
            matrix = matrix.drop(index=negative)

        matrix = matrix.astype(float)
        empty = empty_samples(matrix)
        if empty:
            self.logger.warning(f"Dropping {len(empty)} samples with zero species-level abundance: {empty[:5]}")
            matrix = matrix.drop(index=empty)

        return matrix

    def load_metadata(self, path: Union[str, Path]) -> pd.DataFrame:
        """Read the metadata table indexed by sample id."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Metadata file not found: {path}")

        sep = '\t' if path.suffix.lower() in ('.tsv', '.txt', '.tab') else ','
        metadata = pd.read_csv(path, sep=sep, dtype=str)
        self.logger.info(f"Loaded metadata: {metadata.shape}")
        return self.index_metadata(metadata)

    def index_metadata(self, metadata: pd.DataFrame) -> pd.DataFrame:
        """Check the required columns and index by sample id."""
        required = [self.config.sample_id_col, self.config.class_col, self.config.batch_col]
        missing = [c for c in required if c not in metadata.columns]
        if missing:
            raise DataIntegrityError(f"Metadata is missing required columns: {missing}")

        metadata = metadata.copy()
        metadata[self.config.sample_id_col] = metadata[self.config.sample_id_col].astype(str).str.strip()
        if metadata[self.config.sample_id_col].duplicated().any():
            dupes = metadata.loc[metadata[self.config.sample_id_col].duplicated(), self.config.sample_id_col]
            raise DataIntegrityError(f"Duplicate sample ids in metadata: {dupes.unique().tolist()[:3]}")

        return metadata.set_index(self.config.sample_id_col)

    def assemble(self, abundance: pd.DataFrame, metadata: pd.DataFrame) -> LoadedDataset:
        """
        Inner-join an abundance matrix (samples x taxa) with indexed metadata,
        keep the two configured classes and encode labels and batch.
        """
        class_col = self.config.class_col
        batch_col = self.config.batch_col
        reference, condition = self.config.reference_class, self.config.condition_class

        status = metadata[class_col].astype(str).str.strip()
        in_classes = status.isin([reference, condition])
        dropped = int((~in_classes).sum())
        if dropped:
            self.logger.info(f"Dropping {dropped} samples outside classes '{reference}'/'{condition}'")
        metadata = metadata.loc[in_classes.to_numpy()]

        missing_batch = metadata[batch_col].isna()
        if missing_batch.any():
            self.logger.warning(f"Dropping {int(missing_batch.sum())} samples without a batch label")
            metadata = metadata.loc[~missing_batch.to_numpy()]

        # 按样本ID取交集，顺序以metadata为准
        common = metadata.index[metadata.index.isin(abundance.index)]
        self.logger.info(
            f"Found {len(common)} common samples "
            f"(metadata only: {len(metadata) - len(common)}, profile only: {len(abundance.index.difference(metadata.index))})"
        )
        if len(common) == 0:
            raise DataIntegrityError("No common samples found between profile and metadata")

        abundance = abundance.loc[common]
        metadata = metadata.loc[common]

        observed = set(metadata[class_col].astype(str).str.strip())
        for level in (reference, condition):
            if level not in observed:
                raise ValueError(f"Class '{level}' has no samples after joining; observed: {sorted(observed)}")

        labels = (metadata[class_col].astype(str).str.strip() == condition).astype(int)
        labels.name = "label"
        batch = pd.Series(
            pd.Categorical(metadata[batch_col].astype(str).str.strip()),
            index=metadata.index, name=batch_col,
        )

        if not (abundance.index.equals(labels.index) and labels.index.equals(batch.index)):
            raise DataIntegrityError("Sample order diverged while joining profile and metadata")

        self.logger.info(f"Final dataset: {abundance.shape[0]} samples x {abundance.shape[1]} taxa")
        self.logger.info(f"Label distribution: {labels.value_counts().to_dict()} (1 = '{condition}')")
        self.logger.info(f"Batches: {batch.value_counts().to_dict()}")

        return LoadedDataset(abundance=abundance, metadata=metadata, labels=labels, batch=batch)

    def _strip_suffix(self, sample: str) -> str:
        suffix = self.config.sample_suffix
        if suffix and sample.endswith(suffix):
            return sample[: -len(suffix)]
        return sample

    @staticmethod
    def _count_comment_lines(path: Path, taxon_col: str) -> int:
        """Number of leading '#' lines before the header row."""
        skip = 0
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                if line.startswith('#') and taxon_col not in line:
                    skip += 1
                else:
                    break
        return skip
