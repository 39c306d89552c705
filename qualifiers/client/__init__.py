from .api import QualificationApiClient
from .scheduling import ManualScheduler, Scheduler, ThreadingScheduler
from .state import ClientPrediction, PredictionStateMachine, SaveState

__all__ = [
    "QualificationApiClient",
    "ManualScheduler",
    "Scheduler",
    "ThreadingScheduler",
    "ClientPrediction",
    "PredictionStateMachine",
    "SaveState",
]
