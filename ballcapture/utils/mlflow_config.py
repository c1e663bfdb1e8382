"""
MLflow Configuration Module

Resolves where search runs are tracked.

Environment Variables:
    MLFLOW_TRACKING_URI: The tracking URI (default: a local ./mlruns file store)
    MLFLOW_ARTIFACT_ROOT: Optional artifact root reported alongside the URI

.env File Support:
    If a .env file exists in the project root, it is loaded first. Variables
    already present in the environment are never overridden.

Usage:
    from ballcapture.utils.mlflow_config import setup_mlflow

    config = setup_mlflow()
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import mlflow

logger = logging.getLogger(__name__)

DEFAULT_TRACKING_URI = "file:./mlruns"


def _load_env_file(env_path: Optional[Path] = None) -> None:
    """
    Load environment variables from .env file if it exists.

    Args:
        env_path: Path to .env file. If None, looks for .env in project root.
    """
    if env_path is None:
        # ballcapture/utils/mlflow_config.py -> project root
        env_path = Path(__file__).resolve().parent.parent.parent / ".env"

    if not env_path.exists() or not env_path.is_file():
        return

    try:
        with open(env_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()
                if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
                    value = value[1:-1]
                if key not in os.environ:
                    os.environ[key] = value
    except OSError:
        logger.warning("Could not read %s; using the process environment only", env_path)


@dataclass
class MLflowConfig:
    """Configuration for MLflow tracking."""

    tracking_uri: str
    artifact_root: Optional[str] = None

    def __str__(self) -> str:
        lines = [
            "MLflow Configuration:",
            f"  Tracking URI: {self.tracking_uri}",
        ]
        if self.artifact_root:
            lines.append(f"  Artifact Root: {self.artifact_root}")
        return "\n".join(lines)


def get_mlflow_config(load_env: bool = True) -> MLflowConfig:
    """
    Get MLflow configuration from environment variables.

    Args:
        load_env: Whether to automatically load .env file if it exists.
    """
    if load_env:
        _load_env_file()
    return MLflowConfig(
        tracking_uri=os.environ.get("MLFLOW_TRACKING_URI", DEFAULT_TRACKING_URI),
        artifact_root=os.environ.get("MLFLOW_ARTIFACT_ROOT"),
    )


def setup_mlflow(verbose: bool = True) -> MLflowConfig:
    """Point MLflow at the configured tracking URI and return the config."""
    config = get_mlflow_config()
    mlflow.set_tracking_uri(config.tracking_uri)
    if verbose:
        print(config)
    return config
