#!/usr/bin/env python3
"""
Lottery Walk-Forward Validation - Main Entry Point

Runs walk-forward validation or parameter optimization over a seeded
synthetic draw history and prints the results as JSON.

Usage:
    python scripts/main.py validate --draws 300 --seed 42
    python scripts/main.py optimize --type hybrid --search random --iterations 50

Options:
    --draws INT         Number of synthetic draws to generate (default: 300)
    --seed INT          Seed for the synthetic history and every random source
    --output PATH       Write the JSON result to a file instead of stdout
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np

# Add the parent directory to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.model_config import OPTIMIZATION_CONFIG, VALIDATION_CONFIG
from config.options import INTERVAL_METHODS, ValidationOptions
from models.utils.optimization import OptimizationType, ParameterOptimizer, SearchMethod
from models.utils.progress import ProgressEvent, create_progress_bar, progress_bar_callback
from scripts.background import BackgroundTask, CANCELLED, ERROR, PROGRESS, RESULT
from scripts.utils.setup_logging import setup_logging
from scripts.walk_forward import WalkForwardValidator
from utils.synthetic import generate_synthetic_draws

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Walk-forward validation and parameter optimization')
    parser.add_argument('--draws', type=int, default=300, help='Number of synthetic draws')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--output', type=str, default=None, help='JSON output file')
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    parser.add_argument('--no-progress', action='store_true', help='Disable the progress bar')

    subparsers = parser.add_subparsers(dest='command', required=True)

    validate = subparsers.add_parser('validate', help='Run walk-forward validation')
    validate.add_argument('--min-training-size', type=int, default=VALIDATION_CONFIG['min_training_size'])
    validate.add_argument('--test-window-size', type=int, default=VALIDATION_CONFIG['test_window_size'])
    validate.add_argument('--step-size', type=int, default=VALIDATION_CONFIG['step_size'])
    validate.add_argument('--max-periods', type=int, default=VALIDATION_CONFIG['max_validation_periods'])
    validate.add_argument('--bootstrap-iterations', type=int,
                          default=VALIDATION_CONFIG['bootstrap_iterations'])
    validate.add_argument('--confidence-level', type=float, default=VALIDATION_CONFIG['confidence_level'])
    validate.add_argument('--method', choices=INTERVAL_METHODS, default=VALIDATION_CONFIG['method'])
    validate.add_argument('--no-ensemble', action='store_true')
    validate.add_argument('--no-adaptive', action='store_true')
    validate.add_argument('--records', action='store_true', help='Include every prediction record')

    optimize = subparsers.add_parser('optimize', help='Search offsets and signature weights')
    optimize.add_argument('--type', choices=[t.value for t in OptimizationType], default='hybrid')
    optimize.add_argument('--search', choices=[m.value for m in SearchMethod],
                          default=OPTIMIZATION_CONFIG['method'])
    optimize.add_argument('--iterations', type=int, default=OPTIMIZATION_CONFIG['iterations'])
    optimize.add_argument('--folds', type=int, default=OPTIMIZATION_CONFIG['cross_validation_folds'])

    return parser.parse_args(argv)


def build_task(args, draws):
    """Return (name, task) where task(progress_callback, cancel_token) runs the command."""
    if args.command == 'validate':
        options = ValidationOptions(
            min_training_size=args.min_training_size,
            test_window_size=args.test_window_size,
            step_size=args.step_size,
            max_validation_periods=args.max_periods,
            bootstrap_iterations=args.bootstrap_iterations,
            confidence_level=args.confidence_level,
            method=args.method,
            include_ensemble=not args.no_ensemble,
            adaptive_weighting=not args.no_adaptive,
        )
        validator = WalkForwardValidator(random_state=args.seed)

        def task(progress_callback, cancel_token):
            results = validator.run(draws, options, progress_callback, cancel_token)
            exported = validator.export_results(results, include_records=args.records)
            if args.records:
                exported['records'] = exported['records'].to_dict(orient='records')
            exported['cancelled'] = results.cancelled
            return _Outcome(exported, results.cancelled)
        return 'validate', task

    optimizer = ParameterOptimizer(args.type, random_state=args.seed)
    search_params = {
        'method': args.search,
        'iterations': args.iterations,
        'cross_validation_folds': args.folds,
    }

    def task(progress_callback, cancel_token):
        result = optimizer.optimize(draws, search_params, progress_callback, cancel_token)
        return _Outcome(result.to_dict(), result.cancelled)
    return 'optimize', task


class _Outcome:
    def __init__(self, payload, cancelled):
        self.payload = payload
        self.cancelled = cancelled


def _json_default(value):
    if isinstance(value, np.generic):
        return value.item()
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    if isinstance(value, (set, tuple)):
        return list(value)
    return str(value)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(level=getattr(logging, args.log_level))

    draws = generate_synthetic_draws(args.draws, seed=args.seed)
    logger.info(f"Generated {len(draws)} synthetic draws (seed={args.seed})")

    name, task_fn = build_task(args, draws)
    task = BackgroundTask(task_fn, name=name).start()
    bar = None if args.no_progress else create_progress_bar(total=100, desc=name)
    on_progress = progress_bar_callback(bar) if bar is not None else None

    outcome = None
    try:
        for message in task.messages():
            if message.type == PROGRESS and bar is not None:
                on_progress(ProgressEvent(message.data['progress'], message.data['currentMethod'],
                                          message.data['windowIndex'], message.data['totalWindows']))
            elif message.type in (RESULT, CANCELLED):
                outcome = message.data
            elif message.type == ERROR:
                logger.error(f"{name} failed: {message.data}")
                try:
                    task.result()
                except Exception:
                    logger.debug(f"{name} worker exception collected")
    except KeyboardInterrupt:
        task.cancel()
        outcome = task.result()
    finally:
        if bar is not None:
            bar.close()

    if outcome is None:
        return 1

    text = json.dumps(outcome.payload, indent=2, default=_json_default)
    if args.output:
        Path(args.output).write_text(text)
        logger.info(f"Results written to {args.output}")
    else:
        print(text)
    return 2 if outcome.cancelled else 0


if __name__ == "__main__":
    sys.exit(main())
