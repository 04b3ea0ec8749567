"""Background work: cancellable scheduling and the simulated state portal."""

from .scheduler import AsyncioScheduler, ScheduledHandle, Scheduler, VirtualScheduler
from .submission_simulator import SubmissionSimulator

__all__ = [
    "AsyncioScheduler",
    "ScheduledHandle",
    "Scheduler",
    "VirtualScheduler",
    "SubmissionSimulator",
]
