"""Sprint workflows and the logic behind them."""

from decadog.engine.context import SprintContext
from decadog.engine.orchestrator import SprintOrchestrator
from decadog.engine.points import SprintPoints
from decadog.engine.triage import LoopStatus, MilestoneManager

__all__ = [
    "LoopStatus",
    "MilestoneManager",
    "SprintContext",
    "SprintOrchestrator",
    "SprintPoints",
]
