"""Lifecycle scheduling and task execution."""

from repo_lifecycle.engine.runner import SubprocessRunner, TaskRunner
from repo_lifecycle.engine.scheduler import LANE_ORDER, LaneSet, ScheduleResult, TaskScheduler, expand_lifecycle

__all__ = [
    "LANE_ORDER",
    "LaneSet",
    "ScheduleResult",
    "SubprocessRunner",
    "TaskRunner",
    "TaskScheduler",
    "expand_lifecycle",
]
