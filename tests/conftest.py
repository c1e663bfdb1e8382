import sys
from pathlib import Path

import pytest

# Ensure repository root is on sys.path so `import train...` works in tests
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from ballcapture.envs.core.state import State


@pytest.fixture
def still_state():
    """Ball and player at rest, player facing the ball 2 units away."""
    return State(0.0, 0.0, 0.0, 0.0, 0.0, 2.0, 0.0)


@pytest.fixture
def small_state_sets():
    initial = [
        State(0.0, 0.0, 0.0, 0.0, 0.0, 2.0, 0.0),
        State(0.5, 90.0, 0.0, 0.0, 45.0, 4.0, -30.0),
        State(1.0, -60.0, 0.5, 30.0, 0.0, 6.0, 120.0),
    ]
    performance = [
        State(0.0, 0.0, 0.0, 0.0, 90.0, 3.0, -90.0),
        State(1.5, 155.0, 0.9, -34.0, -145.0, 12.9, 10.0),
    ]
    return initial, performance
