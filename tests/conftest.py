"""Shared fixtures for the qsim test suite."""

import random

import pytest

from qsim import Job, Processor, Queue

SIMPLE_PROC_TIME = 293


def simple_ptg(job):
    """Processing time generator returning a constant."""
    return SIMPLE_PROC_TIME


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def queues():
    return [Queue(queue_id=i) for i in range(3)]


@pytest.fixture
def processors():
    return [Processor(simple_ptg, processor_id=i) for i in range(3)]


def new_jobs(n, clock=0):
    return [Job(arr_time=clock) for _ in range(n)]
