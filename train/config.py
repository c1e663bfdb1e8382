import argparse


def _str2bool(v) -> bool:
    return str(v).lower() in ["1", "true", "yes", "y", "t"]


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Optimize a ball capture policy with cross-entropy direct policy search."
    )
    parser.add_argument(
        "--basis-functions",
        dest="n_basis_functions",
        type=int,
        default=50,
        help="Number of radial basis functions in the policy.",
    )
    parser.add_argument(
        "--samples",
        dest="n_samples",
        type=int,
        default=1000,
        help="Population size drawn at every iteration.",
    )
    parser.add_argument(
        "--elite-fraction",
        type=float,
        default=0.05,
        help="Fraction of the population used to refit the distribution.",
    )
    parser.add_argument(
        "--iterations",
        dest="n_iterations",
        type=int,
        default=50,
        help="Total iteration budget (a resumed run continues up to this budget).",
    )
    parser.add_argument(
        "--optimization-horizon",
        type=int,
        default=30,
        help="Rollout length used to score samples.",
    )
    parser.add_argument(
        "--performance-horizon",
        type=int,
        default=100,
        help="Rollout length used for the per-iteration performance report.",
    )
    parser.add_argument(
        "--turn-steps",
        type=int,
        default=8,
        help="Number of turn actions in the discrete action menu.",
    )
    parser.add_argument(
        "--dash-steps",
        type=int,
        default=4,
        help="Number of dash actions in the discrete action menu.",
    )
    parser.add_argument(
        "--max-sampling-retries",
        type=int,
        default=1000,
        help="Redraw rounds allowed before an invalid sample is treated as a configuration error.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed.")
    parser.add_argument(
        "--num-workers",
        type=int,
        default=1,
        help="Worker processes used to score the population (1 scores in-process).",
    )
    parser.add_argument(
        "--checkpoint-dir",
        type=str,
        default="checkpoints",
        help="Directory receiving one checkpoint per iteration.",
    )
    parser.add_argument(
        "--resume",
        type=str,
        default=None,
        help="Checkpoint file to resume from. Fails if it is missing or does not match.",
    )
    parser.add_argument(
        "--progress",
        type=_str2bool,
        default=True,
        help="Show tqdm progress bars while scoring samples.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level.",
    )
    parser.add_argument(
        "--mlflow-experiment-name",
        type=str,
        default=None,
        help="MLflow experiment to track the run in. Tracking is off when unset.",
    )
    parser.add_argument(
        "--mlflow-run-name",
        type=str,
        default=None,
        help="Optional MLflow run name.",
    )
    return parser


def get_args(argv=None):
    return get_parser().parse_args(argv)
