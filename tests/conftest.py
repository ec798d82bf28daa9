# Shared fixtures for the onboarding tour tests.
# Qt runs on the offscreen platform; the variable must be set before pytest-qt
# creates the QApplication.

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from gui.app.config_store import TourConfig
from gui.services.event_bus import EventBus
from gui.services.tour_completion_store import TourCompletionStore
from gui.services.tour_orchestrator import TourOrchestrator
from gui.services.tour_registry import StepRegistry
from gui.testing import FakeAnchorHost, ManualScheduler


@pytest.fixture
def store(tmp_path):
    return TourCompletionStore(tmp_path / "state")


@pytest.fixture
def clock():
    return ManualScheduler()


@pytest.fixture
def host():
    return FakeAnchorHost(width=1280)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def make_orchestrator(host, clock, store, bus):
    def _make(**overrides):
        return TourOrchestrator(
            overrides.pop("host", host),
            clock,
            store,
            registry=overrides.pop("registry", StepRegistry()),
            config=overrides.pop("config", TourConfig()),
            event_bus=bus,
            **overrides,
        )

    return _make

