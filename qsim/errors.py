# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# errors.py
# -----------------------------------------------------------------------------
# Purpose:
#   Exception types raised by the simulation kernel.
#
# Design notes:
#   - Dropped appends and empty shifts/finishes are routine states in a
#     queueing model and are NOT errors; they return None instead.
#   - ScheduleEmptyError means the driver lost its pending arrival, which is
#     a bug rather than something callers should handle.
#
# Usage:
#   from qsim.errors import ProcessorBusyError
# -----------------------------------------------------------------------------

from __future__ import annotations


class QSimError(Exception):
    """Base class for every error raised by qsim."""


class ProcessorBusyError(QSimError):
    """Raised when a Job is started on a Processor that already holds one."""

    def __init__(self, processor, job):
        self.processor = processor
        self.job = job
        super().__init__(
            f"processor {processor.processor_id} is busy with job "
            f"{processor.current_job.job_id}; rejected job "
            f"{job.job_id if job is not None else None}"
        )


class ScheduleEmptyError(QSimError, RuntimeError):
    """Raised when the next event batch is requested from an empty Schedule."""
