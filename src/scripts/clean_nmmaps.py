"""Clean a raw NMMAPS extract into the panel used by the simulations.

Usage:
    python src/scripts/clean_nmmaps.py --config src/config/simulation.yml
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from nmmaps import clean_panel, load_panel, summarize_panel
from utils import load_config


DEFAULT_CONFIG = Path(__file__).parent.parent / 'config' / 'simulation.yml'


def parse_args():
    parser = argparse.ArgumentParser(description="Clean the raw NMMAPS panel")
    parser.add_argument('--config', default=str(DEFAULT_CONFIG), help="YAML configuration file")
    parser.add_argument('--raw', help="Raw panel file (overrides data.raw_path)")
    parser.add_argument('--output', help="Cleaned panel file (overrides data.panel_path)")
    return parser.parse_args()


def main():
    """Main execution function."""
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    config = load_config(args.config)
    raw_path = Path(args.raw or config['data']['raw_path'])
    panel_path = Path(args.output or config['data']['panel_path'])
    cleaning = config.get('cleaning', {})

    print("\n" + "="*60)
    print("CLEANING NMMAPS PANEL")
    print("="*60)

    print(f"Loading raw data from: {raw_path}")
    raw = load_panel(raw_path)
    print(f"  ({len(raw)} raw records)")

    panel = clean_panel(
        raw,
        max_gap_days=cleaning.get('max_gap_days', 3),
        temperature_unit=cleaning.get('temperature_unit', 'fahrenheit'),
        outcome=cleaning.get('outcome', 'death_total'),
    )

    print("\nPanel summary:")
    for key, value in summarize_panel(panel).items():
        print(f"  {key}: {value}")

    panel_path.parent.mkdir(parents=True, exist_ok=True)
    if panel_path.suffix == '.csv':
        panel.to_csv(panel_path, index=False)
    else:
        panel.to_pickle(panel_path)
    print(f"\nCleaned panel saved to: {panel_path}")


if __name__ == '__main__':
    main()
