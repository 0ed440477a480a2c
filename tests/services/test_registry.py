from unittest.mock import AsyncMock

import pytest

from deadline_coach.services.controller import CountdownController, LifecycleState
from deadline_coach.services.deadline_store import StoreError
from deadline_coach.services.registry import CountdownRegistry
from deadline_coach.services.time_remaining import MS_PER_DAY

from conftest import NOW_MS, FakeClock

FUTURE_DEADLINE = NOW_MS + 40 * MS_PER_DAY


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def make_registry(
    store: AsyncMock, generator: AsyncMock, monotonic: FakeMonotonic
) -> CountdownRegistry:
    clock = FakeClock()

    def factory() -> CountdownController:
        return CountdownController(
            store,
            generator,
            clock=clock,
            tick_interval=3600,
            delete_delay=0,
            deadline_timezone="UTC",
        )

    return CountdownRegistry(
        store,
        generator,
        controller_factory=factory,
        idle_timeout=300,
        monotonic=monotonic,
    )


@pytest.mark.asyncio
async def test_faulted_controller_is_replaced_on_next_access(mock_store, mock_generator):
    mock_store.load.side_effect = [StoreError("transient"), FUTURE_DEADLINE]
    registry = make_registry(mock_store, mock_generator, FakeMonotonic())

    first = await registry.get("user-1")
    assert first.state is LifecycleState.FAULTED

    second = await registry.get("user-1")
    assert second is not first
    assert second.state is LifecycleState.COUNTING
    assert second.deadline_ms == FUTURE_DEADLINE
    assert mock_store.load.await_count == 2
    mock_store.delete.assert_not_called()
    assert len(registry) == 1

    await registry.close_all()
    mock_generator.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_idle_controllers_are_evicted(mock_store, mock_generator):
    mock_store.load.side_effect = lambda identity: FUTURE_DEADLINE if identity == "busy" else None
    monotonic = FakeMonotonic()
    registry = make_registry(mock_store, mock_generator, monotonic)

    idle = await registry.get("idle")
    busy = await registry.get("busy")
    assert idle.state is LifecycleState.AWAITING_INPUT
    assert busy.state is LifecycleState.COUNTING

    monotonic.now = 301.0
    await registry.get("newcomer")

    assert "idle" not in registry
    assert "busy" in registry
    assert "newcomer" in registry
    assert busy.is_ticking

    # A returning identity gets a freshly loaded controller
    again = await registry.get("idle")
    assert again is not idle
    assert again.state is LifecycleState.AWAITING_INPUT

    await registry.close_all()
    assert len(registry) == 0
    assert not busy.is_ticking


@pytest.mark.asyncio
async def test_recent_access_keeps_controller(mock_store, mock_generator):
    monotonic = FakeMonotonic()
    registry = make_registry(mock_store, mock_generator, monotonic)

    first = await registry.get("user-1")
    monotonic.now = 200.0
    await registry.get("user-1")
    monotonic.now = 400.0
    await registry.get("user-2")

    assert "user-1" in registry
    assert await registry.get("user-1") is first
    assert mock_store.load.await_count == 2

    await registry.close_all()
