"""Checkpoint storage for simulation batches."""

import logging

from pathlib import Path
from typing import List, Optional, Set, Tuple, Union

import pandas as pd


logger = logging.getLogger(__name__)


class CheckpointStore:
    """
    Directory of CSV files, one per completed batch of replicates.

    A batch file is written to a temporary name and renamed once complete,
    so an interrupted run never leaves a partial checkpoint behind.

    Parameters
    ----------
    directory : str or Path
        Folder holding the checkpoint files. Created on first save.
    prefix : str, default='batch'
        File name prefix of checkpoint files.
    """

    def __init__(self, directory: Union[str, Path], prefix: str = 'batch'):
        self.directory = Path(directory)
        self.prefix = prefix

    def paths(self) -> List[Path]:
        """Existing checkpoint files in write order."""
        if not self.directory.exists():
            return []
        return sorted(self.directory.glob(f"{self.prefix}_*.csv"))

    def next_index(self) -> int:
        indices = [int(path.stem.rsplit('_', 1)[-1]) for path in self.paths()]
        return max(indices) + 1 if indices else 0

    def save(self, results: pd.DataFrame) -> Path:
        """
        Write one batch of replicate rows.

        Parameters
        ----------
        results : pd.DataFrame
            Replicate rows of the batch.

        Returns
        -------
        Path
            Location of the checkpoint file.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / f"{self.prefix}_{self.next_index():05d}.csv"
        tmp_path = path.with_suffix('.tmp')

        results.to_csv(tmp_path, index=False)
        tmp_path.replace(path)

        logger.info("Checkpoint: saved %d replicates to %s", len(results), path)
        return path

    def load(self) -> pd.DataFrame:
        """Concatenate every checkpoint file; empty frame if there are none."""
        frames = [
            pd.read_csv(path, dtype={'cell_id': str, 'run_id': str})
            for path in self.paths()
            if path.stat().st_size > 0
        ]
        frames = [frame for frame in frames if not frame.empty]
        if not frames:
            return pd.DataFrame()
        return pd.concat(frames, ignore_index=True)

    def completed(self, run_id: Optional[str] = None) -> Set[Tuple[str, int]]:
        """
        (cell_id, rep) pairs already stored on disk.

        Parameters
        ----------
        run_id : str, optional
            Only count rows written by this run (same seed and panel).
            Rows without a 'run_id' column never match.
        """
        stored = self.load()
        if stored.empty:
            return set()
        if run_id is not None:
            if 'run_id' not in stored.columns:
                return set()
            stored = stored[stored['run_id'] == run_id]
        return set(zip(stored['cell_id'].astype(str), stored['rep'].astype(int)))

    def clear(self) -> None:
        """Delete all checkpoint files."""
        for path in self.paths():
            path.unlink()
