"""Simulate the "mad scientist" experiment and report its power.

Usage:
    python src/scripts/mad_scientist.py --n-reps 10000
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from evaluation import print_summary, summarise_results
from simulator import simulate_mad_scientist
from utils import load_config


DEFAULT_CONFIG = Path(__file__).parent.parent / 'config' / 'simulation.yml'


def parse_args():
    parser = argparse.ArgumentParser(description="Run the mad scientist illustration")
    parser.add_argument('--config', default=str(DEFAULT_CONFIG), help="YAML configuration file")
    parser.add_argument('--n-reps', type=int, help="Number of simulated experiments")
    parser.add_argument('--seed', type=int, help="Random seed")
    parser.add_argument('--output', help="CSV file for the replicate rows")
    return parser.parse_args()


def main():
    """Main execution function."""
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    config = load_config(args.config)
    params = dict(config.get('illustration', {}))
    if args.n_reps is not None:
        params['n_reps'] = args.n_reps
    seed = args.seed if args.seed is not None else config.get('random_seed')

    print("Simulating the mad scientist experiment...")
    for key, value in params.items():
        print(f"  {key}: {value}")

    results = simulate_mad_scientist(seed=seed, **params)
    summary = summarise_results(results, group_cols=[])
    print_summary(summary)

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        results.to_csv(output, index=False)
        print(f"\nReplicates saved to: {output}")


if __name__ == '__main__':
    main()
