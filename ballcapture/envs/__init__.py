from ballcapture.envs.ball_capture_mdp import BallCaptureMDP

__all__ = ["BallCaptureMDP"]
