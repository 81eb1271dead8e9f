from .engine import AuthEngine, AuthState, StageOutcome
from .second_factor import SecondFactorDetector

__all__ = ["AuthEngine", "AuthState", "SecondFactorDetector", "StageOutcome"]
