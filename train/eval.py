"""Evaluate a saved direct policy search checkpoint."""

import argparse
import sys

from ballcapture.envs.core.state import State
from ballcapture.search.direct_policy_search import DirectPolicySearch, PerformanceReport
from ballcapture.utils.checkpoint import CheckpointError


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate a ball capture policy checkpoint.")
    parser.add_argument("checkpoint", type=str, help="Checkpoint file (.pkl.gz).")
    parser.add_argument(
        "--horizon",
        type=int,
        default=None,
        help="Rollout length (defaults to the checkpoint's performance horizon).",
    )
    parser.add_argument(
        "--state",
        type=float,
        nargs=7,
        default=None,
        metavar="X",
        help="Initial state to trace: ball speed, ball dir, player speed, player dir, "
        "body dir, distance, bearing.",
    )
    return parser


def run_evaluation(dps: DirectPolicySearch, horizon=None):
    """Recompute the performance report on both fixed state sets."""
    if horizon is not None:
        dps.performance_horizon = horizon
    optimization = dps.compute_performance(dps.initial_states)
    test = dps.compute_performance(dps.performance_states)
    return optimization, test


def format_report(label: str, report: PerformanceReport) -> str:
    return (
        f"{label}: average={report.average_score:.3f} "
        f"bad_states={report.n_bad_states}/{report.n_states} ({report.bad_state_ratio:.1%})"
    )


def print_trajectory(dps: DirectPolicySearch, state: State, horizon: int) -> None:
    print(f"\n--- Trajectory from {state} ---")
    for step, (s, a, r) in enumerate(dps.mdp.trace(state, dps, horizon)):
        print(f"{step:3d}  {s} : {a}  reward={r:.3f}")
    print(f"Discounted return: {dps.mdp.rollout(state, dps, horizon):.3f}")


def main(args):
    try:
        dps = DirectPolicySearch.load(args.checkpoint, progress=False)
    except CheckpointError as e:
        print(f"Could not load {args.checkpoint}: {e}", file=sys.stderr)
        sys.exit(1)

    print(dps.describe())
    optimization, test = run_evaluation(dps, args.horizon)
    print(format_report("Optimization states", optimization))
    print(format_report("Performance test states", test))

    state = State(*args.state) if args.state is not None else dps.performance_states[0]
    print_trajectory(dps, state, dps.performance_horizon)


if __name__ == "__main__":
    main(get_parser().parse_args())
