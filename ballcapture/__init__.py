"""Cross-entropy direct policy search for a simulated soccer ball capture task."""

from ballcapture.envs.ball_capture_mdp import BallCaptureMDP
from ballcapture.envs.core.actions import Action, ActionType
from ballcapture.envs.core.params import DEFAULT_PARAMS, SoccerParams
from ballcapture.envs.core.state import State
from ballcapture.policies import RadialGaussian, RBFPolicy
from ballcapture.search.direct_policy_search import DirectPolicySearch

__version__ = "0.1.0"

__all__ = [
    "Action",
    "ActionType",
    "BallCaptureMDP",
    "DEFAULT_PARAMS",
    "DirectPolicySearch",
    "RadialGaussian",
    "RBFPolicy",
    "SoccerParams",
    "State",
]
