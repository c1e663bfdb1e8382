#!/usr/bin/env python3
"""
Main training script for the ball capture task.

Runs the cross-entropy direct policy search: every iteration samples a
population of radial basis function policies, scores them by rollouts through
the ball capture MDP, refits the sampling distribution on the elite samples
and writes a checkpoint. A run can be resumed from any of those checkpoints.

Run from the repository root:
    python -m train.train --basis-functions 50 --samples 1000 --num-workers 8
    python -m train.train --resume checkpoints/50_1000_10.pkl.gz
"""

import contextlib
import logging
import sys

import mlflow

from ballcapture.envs.core.params import SoccerParams
from ballcapture.search.direct_policy_search import DirectPolicySearch
from ballcapture.utils.checkpoint import CheckpointError
from ballcapture.utils.mlflow_logger import MLflowIterationLogger
from train.config import get_args


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def build_search(args) -> DirectPolicySearch:
    """Create a fresh optimizer, or resume one when --resume is given."""
    params = SoccerParams(turn_steps=args.turn_steps, dash_steps=args.dash_steps)
    if args.resume:
        dps = DirectPolicySearch.load(
            args.resume,
            expected_basis_functions=args.n_basis_functions,
            expected_discrete_actions=params.n_discrete_actions,
            n_workers=args.num_workers,
            checkpoint_dir=args.checkpoint_dir,
            progress=args.progress,
        )
        # the iteration budget on the command line wins over the stored one
        dps.n_iterations = args.n_iterations
        return dps
    return DirectPolicySearch(
        n_basis_functions=args.n_basis_functions,
        n_samples=args.n_samples,
        elite_fraction=args.elite_fraction,
        n_iterations=args.n_iterations,
        optimization_horizon=args.optimization_horizon,
        performance_horizon=args.performance_horizon,
        params=params,
        seed=args.seed,
        n_workers=args.num_workers,
        max_sampling_retries=args.max_sampling_retries,
        checkpoint_dir=args.checkpoint_dir,
        progress=args.progress,
    )


def print_iteration(dps: DirectPolicySearch, result) -> None:
    print("-" * 50)
    print(f"Iteration {result.iteration} / {dps.n_iterations} ({result.seconds:.1f}s)")
    print(f"  Best sample score:  {result.best_score:.3f}")
    print(f"  Elite mean score:   {result.elite_mean_score:.3f} ({result.n_elites} elites)")
    print(
        f"  Performance scores: {result.optimization.average_score:.3f} ; "
        f"{result.test.average_score:.3f}"
    )
    print(
        f"  Bad states:         {result.optimization.n_bad_states} ; {result.test.n_bad_states} "
        f"({result.optimization.bad_state_ratio:.1%} ; {result.test.bad_state_ratio:.1%})"
    )
    print(f"  Compute time (min): {dps.total_computation_time / 60.0:.2f}")
    if result.checkpoint_path is not None:
        print(f"  Checkpoint:         {result.checkpoint_path}")


def main(args):
    """Main training function."""
    configure_logging(args.log_level)

    try:
        dps = build_search(args)
    except CheckpointError as e:
        print(f"Could not resume from {args.resume}: {e}", file=sys.stderr)
        sys.exit(1)

    print(dps.describe())

    callbacks = [print_iteration]
    if args.mlflow_experiment_name:
        from ballcapture.utils.mlflow_config import setup_mlflow

        setup_mlflow(verbose=True)
        mlflow.set_experiment(args.mlflow_experiment_name)
        run_context = mlflow.start_run(run_name=args.mlflow_run_name)
        callbacks.append(MLflowIterationLogger())
    else:
        run_context = contextlib.nullcontext()

    def on_iteration(search, result):
        for callback in callbacks:
            callback(search, result)

    with run_context as run:
        if run is not None:
            print("MLflow tracking URI:", mlflow.get_tracking_uri())
            mlflow.log_params(vars(args))
            print(f"MLflow Run ID: {run.info.run_id}")

        results = dps.run(on_iteration=on_iteration)

    print("=" * 50)
    print(f"Search finished after {len(results)} new iteration(s)")
    print(dps.describe())
    return dps


if __name__ == "__main__":
    main(get_args())
