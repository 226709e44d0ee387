"""
Shared pytest fixtures and configuration for StreamScope tests.
"""

import pytest

from streamscope import GraphTracker, ManualTimers, RecordsPlugin, get_active_spy


@pytest.fixture(autouse=True)
def teardown_active_spy():
    """Tear down any probe session a test left behind to prevent state leakage."""
    yield
    session = get_active_spy()
    if session is not None:
        session.teardown()


@pytest.fixture
def timers():
    """Virtual-time timers for deterministic flushing."""
    return ManualTimers()


@pytest.fixture
def records_plugin():
    return RecordsPlugin()


@pytest.fixture
def tracker(timers):
    """A graph tracker that flushes synchronously."""
    return GraphTracker(retention=0, timers=timers)
