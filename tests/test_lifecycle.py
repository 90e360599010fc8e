"""Tests del trigger de ciclo de vida (background → active fuerza reconexión)."""

from unittest.mock import MagicMock

import pytest

from telemetry_api.lifecycle.activity import ActivityState, InProcessActivitySource
from telemetry_api.lifecycle.trigger import LifecycleTrigger


@pytest.fixture
def source() -> InProcessActivitySource:
    return InProcessActivitySource()


@pytest.fixture
def target():
    return MagicMock()


@pytest.fixture
def trigger(target, source) -> LifecycleTrigger:
    t = LifecycleTrigger(target, source)
    t.start()
    return t


class TestLifecycleTrigger:

    def test_resume_forces_reconnect(self, trigger, target, source):
        source.emit(ActivityState.BACKGROUND)
        source.emit(ActivityState.ACTIVE)

        target.reconnect.assert_called_once_with("resume")
        assert trigger.resumes == 1
        assert trigger.state == ActivityState.ACTIVE

    def test_background_leaves_connection_alone(self, trigger, target, source):
        source.emit(ActivityState.BACKGROUND)

        target.reconnect.assert_not_called()
        assert trigger.state == ActivityState.BACKGROUND

    def test_active_while_active_is_noop(self, trigger, target, source):
        source.emit(ActivityState.ACTIVE)
        source.emit(ActivityState.ACTIVE)

        target.reconnect.assert_not_called()

    def test_repeated_background_counts_one_resume(self, trigger, target, source):
        source.emit(ActivityState.BACKGROUND)
        source.emit(ActivityState.BACKGROUND)
        source.emit(ActivityState.ACTIVE)

        assert target.reconnect.call_count == 1

    def test_every_resume_reconnects(self, trigger, target, source):
        for _ in range(3):
            source.emit(ActivityState.BACKGROUND)
            source.emit(ActivityState.ACTIVE)

        assert target.reconnect.call_count == 3

    def test_starting_in_background(self, target, source):
        t = LifecycleTrigger(target, source, initial_state=ActivityState.BACKGROUND)
        t.start()

        source.emit(ActivityState.ACTIVE)

        target.reconnect.assert_called_once_with("resume")

    def test_stop_unsubscribes(self, trigger, target, source):
        trigger.stop()
        trigger.stop()

        source.emit(ActivityState.BACKGROUND)
        source.emit(ActivityState.ACTIVE)

        target.reconnect.assert_not_called()

    def test_start_is_idempotent(self, trigger, target, source):
        trigger.start()

        source.emit(ActivityState.BACKGROUND)
        source.emit(ActivityState.ACTIVE)

        target.reconnect.assert_called_once()


class TestInProcessActivitySource:

    def test_listener_error_does_not_stop_others(self, source):
        good = MagicMock()
        source.subscribe(MagicMock(side_effect=RuntimeError("boom")))
        source.subscribe(good)

        source.emit(ActivityState.BACKGROUND)

        good.assert_called_once_with(ActivityState.BACKGROUND)

    def test_unsubscribe(self, source):
        listener = MagicMock()
        unsubscribe = source.subscribe(listener)
        unsubscribe()
        unsubscribe()

        source.emit(ActivityState.ACTIVE)

        listener.assert_not_called()
