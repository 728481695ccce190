"""Scheduling subsystem — schedule tracker, strategy registry, scheduler, reporters."""

from .reporters import CompositeReporter, LoggingReporter, ResultReporter, StatusBoard
from .scheduler import Scheduler, SchedulerState, build_scheduler
from .strategies import StrategyRegistry
from .tracker import ScheduleTracker
