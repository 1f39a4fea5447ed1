"""Run a power simulation sweep over the configured parameter grid.

Usage:
    python src/scripts/run_simulations.py --config src/config/simulation.yml
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from evaluation import print_summary, summarise_results
from nmmaps import load_panel
from simulator import SimulationRunner
from utils import load_simulation_config


DEFAULT_CONFIG = Path(__file__).parent.parent / 'config' / 'simulation.yml'


def parse_args():
    parser = argparse.ArgumentParser(description="Run the power simulation sweep")
    parser.add_argument('--config', default=str(DEFAULT_CONFIG), help="YAML configuration file")
    parser.add_argument('--n-iter', type=int, help="Replicates per parameter cell")
    parser.add_argument('--n-jobs', type=int, help="Parallel workers (-1 for all cores)")
    parser.add_argument('--no-resume', action='store_true', help="Discard existing checkpoints")
    parser.add_argument('--quiet', action='store_true', help="Hide the progress bar")
    return parser.parse_args()


def main():
    """Main execution function."""
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    print("\n" + "="*70)
    print(" "*15 + "AIR POLLUTION POWER SIMULATIONS")
    print("="*70 + "\n")

    print("Loading configuration...")
    config = load_simulation_config(args.config)
    sim_config = config['simulation']

    panel = load_panel(config['data']['panel_path'])
    print(f"Panel: {panel['city'].nunique()} cities, {panel['date'].nunique()} days")

    runner = SimulationRunner(panel, sim_config)
    grid = runner.build_grid()
    print(f"Parameter grid: {len(grid)} cells ({sim_config['grid_mode']})")

    results = runner.run(
        grid,
        n_iter=args.n_iter,
        n_jobs=args.n_jobs,
        resume=not args.no_resume,
        verbose=not args.quiet,
    )

    alpha = sim_config['alpha']
    summary = summarise_results(results, alpha=alpha)
    print_summary(summary, alpha=alpha)

    output = config.get('output', {})
    results_path = Path(output.get('results_path', 'results/replicates.csv'))
    summary_path = Path(output.get('summary_path', 'results/summary.csv'))
    results_path.parent.mkdir(parents=True, exist_ok=True)
    summary_path.parent.mkdir(parents=True, exist_ok=True)
    results.to_csv(results_path, index=False)
    summary.to_csv(summary_path, index=False)

    print("\n" + "="*70)
    print(" "*25 + "EXECUTION COMPLETE!")
    print("="*70 + "\n")
    print(f"Replicates saved to: {results_path}")
    print(f"Summary saved to: {summary_path}")


if __name__ == '__main__':
    main()
