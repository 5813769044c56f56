"""
Tests for the alert decorator chain.

Repeating decorators run real asyncio timers with short intervals; every test
stops its decorator so no task outlives the test's event loop.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from vitalwatch.domain.models import Alert, AlertLike, ReadingKind
from vitalwatch.services.alert_engine import AlertEngine
from vitalwatch.services.decorators import PriorityDecorator, RepeatingDecorator
from vitalwatch.services.reading_store import ReadingStore
from vitalwatch.services.rules import SYSTOLIC_TOO_HIGH

INTERVAL = 0.05


@pytest.fixture
def raw_alert() -> Alert:
    return Alert(patient_id=1, condition=SYSTOLIC_TOO_HIGH, timestamp=100)


class TestPriorityDecorator:
    def test_condition_gets_priority_suffix(self, raw_alert: Alert) -> None:
        decorated = PriorityDecorator(raw_alert, "HIGH")
        assert decorated.condition == "SYSTOLIC TOO HIGH (Priority Level: HIGH)"

    def test_empty_inner_condition(self) -> None:
        decorated = PriorityDecorator(Alert(patient_id=1, condition="", timestamp=0), "HIGH")
        assert decorated.condition == " (Priority Level: HIGH)"

    def test_fields_delegate_to_inner(self, raw_alert: Alert) -> None:
        decorated = PriorityDecorator(raw_alert, "LOW")

        assert decorated.patient_id == 1
        assert decorated.timestamp == 100
        assert decorated.root is raw_alert
        assert raw_alert.condition == SYSTOLIC_TOO_HIGH

    def test_chain_composes_in_wrapping_order(self, raw_alert: Alert) -> None:
        decorated = PriorityDecorator(PriorityDecorator(raw_alert, "LOW"), "HIGH")
        assert decorated.condition == (
            "SYSTOLIC TOO HIGH (Priority Level: LOW) (Priority Level: HIGH)"
        )

    def test_trigger_delivers_outermost_wrapper_once(self, raw_alert: Alert) -> None:
        delivered: list[AlertLike] = []
        decorated = PriorityDecorator(raw_alert, "HIGH")

        decorated.trigger(delivered.append)

        assert delivered == [decorated]


class TestRepeatingDecorator:
    @pytest.fixture
    def store(self) -> ReadingStore:
        store = ReadingStore()
        store.append(1, 190.0, ReadingKind.SYSTOLIC_PRESSURE, 100)
        return store

    @pytest.fixture
    def engine(self, store: ReadingStore) -> AlertEngine:
        return AlertEngine(store, MagicMock())

    def test_condition_is_unchanged(self, raw_alert: Alert, engine: AlertEngine) -> None:
        repeating = RepeatingDecorator(raw_alert, 5, engine, 1)
        assert repeating.condition == SYSTOLIC_TOO_HIGH

    def test_rejects_non_positive_interval(self, raw_alert: Alert, engine: AlertEngine) -> None:
        with pytest.raises(ValueError):
            RepeatingDecorator(raw_alert, 0, engine, 1)

    def test_stop_is_idempotent_and_safe_before_start(
        self, raw_alert: Alert, engine: AlertEngine
    ) -> None:
        repeating = RepeatingDecorator(raw_alert, 5, engine, 1)

        repeating.stop()
        repeating.stop()

        assert not repeating.is_running

    async def test_stop_before_first_tick_leaves_only_initial_fire(
        self, raw_alert: Alert, engine: AlertEngine
    ) -> None:
        sink = MagicMock()
        repeating = RepeatingDecorator(raw_alert, INTERVAL, engine, 1)

        repeating.trigger(sink)
        repeating.stop()
        await asyncio.sleep(INTERVAL * 4)

        sink.assert_called_once_with(repeating)
        assert repeating.refire_count == 0

    async def test_refires_while_condition_holds(
        self, raw_alert: Alert, engine: AlertEngine
    ) -> None:
        delivered: list[AlertLike] = []
        repeating = RepeatingDecorator(raw_alert, INTERVAL, engine, 1)

        repeating.trigger(delivered.append)
        await asyncio.sleep(INTERVAL * 5)
        repeating.stop()
        count_at_stop = len(delivered)
        await asyncio.sleep(INTERVAL * 3)

        assert count_at_stop >= 3
        assert len(delivered) == count_at_stop
        assert all(alert is repeating for alert in delivered)

    async def test_stabilized_condition_does_not_refire(self, raw_alert: Alert) -> None:
        store = ReadingStore()
        store.append(1, 120.0, ReadingKind.SYSTOLIC_PRESSURE, 100)
        engine = AlertEngine(store, MagicMock())
        sink = MagicMock()
        repeating = RepeatingDecorator(raw_alert, INTERVAL, engine, 1)

        repeating.trigger(sink)
        await asyncio.sleep(INTERVAL * 4)

        assert repeating.is_running
        repeating.stop()
        assert sink.call_count == 1

    async def test_refire_carries_outer_priority(
        self, raw_alert: Alert, engine: AlertEngine
    ) -> None:
        delivered: list[AlertLike] = []
        chain = PriorityDecorator(
            RepeatingDecorator(raw_alert, INTERVAL, engine, 1), "HIGH"
        )

        chain.trigger(delivered.append)
        await asyncio.sleep(INTERVAL * 3)
        chain.inner.stop()  # type: ignore[attr-defined]

        assert len(delivered) >= 2
        assert {a.condition for a in delivered} == {"SYSTOLIC TOO HIGH (Priority Level: HIGH)"}

    async def test_second_trigger_does_not_start_second_timer(
        self, raw_alert: Alert, engine: AlertEngine
    ) -> None:
        sink = MagicMock()
        repeating = RepeatingDecorator(raw_alert, 10, engine, 1)

        repeating.trigger(sink)
        first_task = repeating._task
        repeating.trigger(sink)

        assert repeating._task is first_task
        assert sink.call_count == 2
        repeating.stop()

    def test_trigger_without_running_loop_delivers_nothing(
        self, raw_alert: Alert, engine: AlertEngine
    ) -> None:
        sink = MagicMock()
        repeating = RepeatingDecorator(raw_alert, 1, engine, 1)

        with pytest.raises(RuntimeError):
            repeating.trigger(sink)

        sink.assert_not_called()
        assert not repeating.is_running
