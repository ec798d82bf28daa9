"""Testing utilities for the onboarding tour.

This subpackage intentionally avoids importing PyQt at module import time to
keep tests fast and headless-friendly.
"""

from __future__ import annotations

__all__ = [
    "FakeElement",
    "FakeAnchorHost",
    "ManualTimer",
    "ManualScheduler",
]

from .tour_doubles import FakeElement, FakeAnchorHost, ManualTimer, ManualScheduler
