"""Main interface for running simulation sweeps."""

import logging

import numpy as np
import pandas as pd

from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from joblib import Parallel, delayed, effective_n_jobs
from tqdm import tqdm

from estimators import EstimationError, FixestEstimator, ModelSpec
from utils.checkpoints import CheckpointStore

from .core.base_design import BaseDesign
from .core.data_structures import PARAM_COLUMNS, ParameterCell, ReplicateResult
from .core.utils import replicate_seed, run_fingerprint
from .components.sampler import StudyPeriodSampler
from .designs import IVDesign, OLSDesign, RDDDesign, ReducedFormDesign
from .grid import build_parameter_grid, cells_from_grid


logger = logging.getLogger(__name__)

DESIGNS = {
    'reduced_form': ReducedFormDesign,
    'RDD': RDDDesign,
    'OLS': OLSDesign,
    'IV': IVDesign,
}

# numerical failures that only invalidate the replicate they occur in
REPLICATE_ERRORS = (EstimationError, np.linalg.LinAlgError, FloatingPointError, ZeroDivisionError)

Task = Tuple[ParameterCell, ModelSpec, int]


def run_replicate(
    sampler: StudyPeriodSampler,
    design: BaseDesign,
    cell: ParameterCell,
    spec: ModelSpec,
    rep: int,
    base_seed: int
) -> Dict:
    """Run one Monte Carlo draw.

    Args:
        sampler: Study period sampler wrapping the panel
        design: Identification design matching ``cell.id_method``
        cell: Parameter cell
        spec: Base model parsed from ``cell.formula``
        rep: Repetition index
        base_seed: Run-level seed

    Returns:
        dict: ReplicateResult fields. Failed draws carry NaN statistics and
        the error message.
    """
    seed = replicate_seed(base_seed, cell.cell_id, rep)
    rng = np.random.default_rng(seed)

    try:
        sample = sampler.draw(cell.n_days, cell.n_cities, rng)
        simulated, result = design.run(sample, cell, spec, rng)
    except REPLICATE_ERRORS as e:
        logger.debug("Replicate %s/%d failed: %s", cell.cell_id, rep, e)
        return ReplicateResult(
            cell_id=cell.cell_id,
            rep=rep,
            seed=seed,
            estimate=np.nan,
            std_error=np.nan,
            p_value=np.nan,
            n_obs=0,
            true_effect=np.nan,
            error=f"{type(e).__name__}: {e}",
        ).to_dict()

    return ReplicateResult(
        cell_id=cell.cell_id,
        rep=rep,
        seed=seed,
        estimate=result.estimate,
        std_error=result.std_error,
        p_value=result.p_value,
        n_obs=result.n_obs,
        true_effect=simulated.true_effect,
        f_stat=np.nan if result.f_stat is None else result.f_stat,
        dof=np.nan if result.dof is None else result.dof,
        share_treated=simulated.metadata['share_treated'],
        n_excluded=simulated.metadata['n_excluded'],
    ).to_dict()


def _run_chunk(
    sampler: StudyPeriodSampler,
    designs: Dict[str, BaseDesign],
    tasks: List[Task],
    base_seed: int
) -> List[Dict]:
    return [
        run_replicate(sampler, designs[cell.id_method], cell, spec, rep, base_seed)
        for cell, spec, rep in tasks
    ]


class SimulationRunner:
    """High-level interface for running simulation sweeps."""

    def __init__(
        self,
        panel: pd.DataFrame,
        config: Optional[Dict] = None,
        seed: Optional[int] = None
    ):
        """Initialize simulation runner.

        Args:
            panel: Cleaned panel (one row per city and date)
            config: Simulation configuration (the 'simulation' section of
                the YAML file)
            seed: Run-level seed; defaults to config['random_seed'] or 42
        """
        self.config = config or {}
        self.seed = seed if seed is not None else self.config.get('random_seed', 42)
        self.sampler = StudyPeriodSampler(panel)
        self.run_id = run_fingerprint(self.sampler.panel, self.seed)

        estimator = FixestEstimator()
        self.designs: Dict[str, BaseDesign] = {
            name: design(self.config, estimator) for name, design in DESIGNS.items()
        }

    @property
    def panel(self) -> pd.DataFrame:
        return self.sampler.panel

    def build_grid(
        self,
        baseline: Optional[Dict] = None,
        vary: Optional[Dict] = None,
        mode: Optional[str] = None
    ) -> pd.DataFrame:
        """Build the parameter grid, defaulting to the configured one."""
        baseline = baseline if baseline is not None else self.config.get('baseline')
        if baseline is None:
            raise ValueError("No baseline parameters given or configured")
        return build_parameter_grid(
            baseline,
            vary if vary is not None else self.config.get('vary'),
            mode or self.config.get('grid_mode', 'one_at_a_time')
        )

    def parse_specs(self, grid: pd.DataFrame) -> Dict[str, ModelSpec]:
        """Parse every formula of the grid and check it against the panel.

        Malformed formulas and unknown columns abort the run before any
        replicate is drawn.
        """
        specs = {}
        for formula in grid['formula'].unique():
            spec = ModelSpec.from_formula(formula)
            self.designs['OLS'].estimator.validate(self.panel, BaseDesign.ols_base(spec))
            specs[formula] = spec
        return specs

    def run(
        self,
        grid: Optional[pd.DataFrame] = None,
        n_iter: Optional[int] = None,
        n_jobs: Optional[int] = None,
        checkpoint_dir: Optional[Union[str, Path]] = None,
        checkpoint_every: Optional[int] = None,
        resume: bool = True,
        verbose: bool = True
    ) -> pd.DataFrame:
        """Run every cell of the grid ``n_iter`` times.

        Args:
            grid: Parameter grid; built from the configuration when None
            n_iter: Repetitions per cell
            n_jobs: joblib worker count (1 runs in-process, -1 uses all cores)
            checkpoint_dir: Folder for batch checkpoints; None keeps results
                in memory only
            checkpoint_every: Replicates per batch; one batch when None
            resume: Skip replicates this run (same seed and panel) already
                stored in checkpoint_dir; rows from other runs are ignored
            verbose: Show a progress bar over batches

        Returns:
            pd.DataFrame: One row per replicate with its parameter values.
            Failed replicates are included with NaN statistics and an
            'error' message.
        """
        checkpoint_config = self.config.get('checkpoint', {}) or {}
        grid = grid if grid is not None else self.build_grid()
        n_iter = n_iter or self.config.get('n_iter', 100)
        n_jobs = n_jobs or self.config.get('n_jobs', 1)
        checkpoint_dir = checkpoint_dir or checkpoint_config.get('dir')
        checkpoint_every = checkpoint_every or checkpoint_config.get('every')

        specs = self.parse_specs(grid)
        cells = cells_from_grid(grid)

        store = CheckpointStore(checkpoint_dir) if checkpoint_dir else None
        done = set()
        if store is not None:
            if resume:
                done = store.completed(self.run_id)
            else:
                store.clear()

        tasks = [
            (cell, specs[cell.formula], rep)
            for cell in cells
            for rep in range(n_iter)
            if (cell.cell_id, rep) not in done
        ]
        logger.info(
            "Running %d replicates over %d cells (%d already on disk)",
            len(tasks), len(cells), len(cells) * n_iter - len(tasks)
        )

        batch_size = checkpoint_every or max(len(tasks), 1)
        frames = []
        for start in tqdm(
            range(0, len(tasks), batch_size),
            desc="Simulation batches",
            disable=not verbose
        ):
            rows = self._run_batch(tasks[start:start + batch_size], n_jobs)
            frame = self._attach_parameters(pd.DataFrame(rows), grid, self.run_id)
            if store is not None:
                store.save(frame)
            frames.append(frame)

        if store is not None:
            results = store.load()
        else:
            results = pd.concat(frames, ignore_index=True) if frames else pd.DataFrame()

        return self._restrict(results, grid, n_iter, self.run_id)

    def _run_batch(self, tasks: List[Task], n_jobs: int) -> List[Dict]:
        if not tasks:
            return []

        n_workers = min(effective_n_jobs(n_jobs), len(tasks))
        if n_workers == 1:
            rows = _run_chunk(self.sampler, self.designs, tasks, self.seed)
        else:
            chunks = [tasks[i::n_workers] for i in range(n_workers)]
            results = Parallel(n_jobs=n_workers, prefer="processes")(
                delayed(_run_chunk)(self.sampler, self.designs, chunk, self.seed)
                for chunk in chunks
            )
            rows = [row for chunk_rows in results for row in chunk_rows]

        n_failed = sum(row['error'] is not None for row in rows)
        if n_failed:
            logger.warning("%d of %d replicates failed and will be dropped", n_failed, len(rows))
        return rows

    @staticmethod
    def _attach_parameters(rows: pd.DataFrame, grid: pd.DataFrame, run_id: str) -> pd.DataFrame:
        if rows.empty:
            return rows
        params = grid[['cell_id'] + PARAM_COLUMNS]
        return params.merge(rows, on='cell_id', how='right').assign(run_id=run_id)

    @staticmethod
    def _restrict(results: pd.DataFrame, grid: pd.DataFrame, n_iter: int, run_id: str) -> pd.DataFrame:
        """Keep replicates of this run and grid only (checkpoints may hold more)."""
        if results.empty:
            return results
        if 'run_id' in results.columns:
            same_run = results['run_id'].astype(str) == run_id
        else:
            same_run = pd.Series(False, index=results.index)
        stale = int((~same_run).sum())
        if stale:
            logger.warning(
                "Ignoring %d checkpointed replicates drawn with a different seed or panel",
                stale
            )
        keep = (
            same_run
            & results['cell_id'].astype(str).isin(grid['cell_id'])
            & (results['rep'] < n_iter)
        )
        order = {cell_id: i for i, cell_id in enumerate(grid['cell_id'])}
        results = results.loc[keep].assign(_order=lambda d: d['cell_id'].astype(str).map(order))
        results = results.sort_values(['_order', 'rep'], kind='stable')
        return results.drop(columns='_order').reset_index(drop=True)
