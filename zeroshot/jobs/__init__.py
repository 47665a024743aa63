"""Job layer - one background job at a time, reported through events."""

from .orchestrator import (
    Job,
    JobEvents,
    JobKind,
    JobOrchestrator,
    JobState,
    default_model_factory,
)

__all__ = [
    "Job",
    "JobEvents",
    "JobKind",
    "JobOrchestrator",
    "JobState",
    "default_model_factory",
]
