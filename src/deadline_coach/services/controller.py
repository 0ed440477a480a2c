"""Countdown lifecycle controller.

This module provides the CountdownController class that owns a single
countdown for one identity. It handles:

- The lifecycle state machine (bootstrapping, awaiting input, counting,
  reached, faulted)
- The once-per-second tick loop that drives transitions out of counting
- De-duplicated content generation with a single in-flight request
- Fire-and-forget persistence of the deadline, applied in submission order

All state is mutated on one event loop. Ticks are pure state transitions
(``apply_tick``) whose side effects are performed separately, so the
transition logic can be exercised without timers.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Final

from deadline_coach.core.clock import Clock, now_millis
from deadline_coach.core.settings import settings
from deadline_coach.services.content_policy import (
    NOT_STARTED_MESSAGE,
    NOT_STARTED_TIP,
    ContentRequestPair,
    select_content_requests,
)
from deadline_coach.services.countdown_input import deadline_for_days, parse_day_count
from deadline_coach.services.deadline_store import DeadlineStore, StoreError
from deadline_coach.services.generation import (
    ContentGenerationClient,
    GeneratedContent,
    GenerationError,
)
from deadline_coach.services.time_remaining import (
    ZERO_REMAINING,
    RemainingTime,
    calculate_remaining,
)

# Configure logger for this module
logger = logging.getLogger(__name__)

DEFAULT_HEADLINE: Final[str] = "Exam Countdown"
REACHED_HEADLINE: Final[str] = "Exam Day is Here!"
LOAD_FAILURE_MESSAGE: Final[str] = "Error loading previous countdown. Please try again."

IDLE_CONTENT: Final[GeneratedContent] = GeneratedContent(NOT_STARTED_MESSAGE, NOT_STARTED_TIP)
LOADING_CONTENT: Final[GeneratedContent] = GeneratedContent(
    "Generating personalized motivation...",
    "Generating personalized study tip...",
)
UNEXPECTED_FAILURE_CONTENT: Final[GeneratedContent] = GeneratedContent(
    "An unexpected error occurred. Please try again.",
    "An unexpected error occurred. Please try again.",
)


class LifecycleState(str, Enum):
    """Exactly one of these is active for a controller at any time."""

    BOOTSTRAPPING = "bootstrapping"
    AWAITING_INPUT = "awaiting_input"
    COUNTING = "counting"
    REACHED = "reached"
    FAULTED = "faulted"


class TickEffect(Enum):
    """Side effects requested by a state transition."""

    GENERATE = "generate"
    DELETE_RECORD = "delete_record"
    STOP_TICKING = "stop_ticking"
    CONTENT_CHANGED = "content_changed"


class ControllerStateError(RuntimeError):
    """Raised when an operation is not accepted in the current state."""


@dataclass(frozen=True)
class GenerationRequest:
    """A generation the controller wants performed for a day-bucket."""

    day_bucket: int
    pair: ContentRequestPair
    epoch: int


@dataclass(frozen=True)
class TickOutcome:
    """Result of a single tick: new state plus the effects to perform."""

    state: LifecycleState
    remaining: RemainingTime
    effects: tuple[TickEffect, ...] = ()
    generation: GenerationRequest | None = None


@dataclass
class GenerationDedupeKey:
    """Tracks which day-bucket has content and whether a request is pending.

    ``failed_day`` keeps a bucket whose generation failed from being retried
    every second; the next bucket change tries again.
    """

    last_day: int | None = None
    failed_day: int | None = None
    deadline_day_shown: bool = False
    in_flight: bool = False

    def should_generate(self, days: int) -> bool:
        return not self.in_flight and days != self.last_day and days != self.failed_day


@dataclass(frozen=True)
class CountdownSnapshot:
    """Read-only view of the controller published to observers."""

    state: LifecycleState
    identity: str | None
    deadline_ms: int | None
    remaining: RemainingTime
    content: GeneratedContent
    loading: bool
    headline: str
    error: str | None = None


Observer = Callable[[CountdownSnapshot], None]


class CountdownController:
    """Drives one countdown: loading, ticking, generating and resetting."""

    def __init__(
        self,
        store: DeadlineStore,
        generator: ContentGenerationClient,
        *,
        clock: Clock = now_millis,
        tick_interval: float | None = None,
        delete_delay: float | None = None,
        deadline_hour: int | None = None,
        deadline_timezone: str | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._generator = generator
        self._clock = clock
        self._tick_interval = (
            settings.tick_interval_seconds if tick_interval is None else tick_interval
        )
        self._delete_delay = (
            settings.stale_record_delete_delay_seconds if delete_delay is None else delete_delay
        )
        self._deadline_hour = deadline_hour
        self._deadline_timezone = deadline_timezone
        self._sleep = sleep

        self._identity: str | None = None
        self._state = LifecycleState.BOOTSTRAPPING
        self._deadline_ms: int | None = None
        self._remaining = ZERO_REMAINING
        self._content = IDLE_CONTENT
        self._loading = False
        self._error: str | None = None
        self._dedupe = GenerationDedupeKey()
        self._epoch = 0
        self._resets_pending = 0

        self._tick_task: asyncio.Task[None] | None = None
        self._generation_task: asyncio.Task[None] | None = None
        self._persistence_tail: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[None]] = set()
        self._observers: list[Observer] = []

    # --- Read-only state -----------------------------------------------------

    @property
    def identity(self) -> str | None:
        return self._identity

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def remaining(self) -> RemainingTime:
        return self._remaining

    @property
    def content(self) -> GeneratedContent:
        return self._content

    @property
    def deadline_ms(self) -> int | None:
        return self._deadline_ms

    @property
    def dedupe(self) -> GenerationDedupeKey:
        return self._dedupe

    @property
    def is_ticking(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    @property
    def has_pending_generation(self) -> bool:
        return self._generation_task is not None and not self._generation_task.done()

    def headline(self) -> str:
        """Title shown above the countdown."""
        if self._state is LifecycleState.COUNTING:
            if self._remaining.days > 0:
                return f"{self._remaining.days} days to go! 💪"
            return "Less than a day left! ⏰"
        if self._state is LifecycleState.REACHED:
            return REACHED_HEADLINE
        return DEFAULT_HEADLINE

    def snapshot(self) -> CountdownSnapshot:
        return CountdownSnapshot(
            state=self._state,
            identity=self._identity,
            deadline_ms=self._deadline_ms,
            remaining=self._remaining,
            content=self._content,
            loading=self._loading,
            headline=self.headline(),
            error=self._error,
        )

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer`` for snapshots; returns an unsubscribe callable."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("Countdown observer raised; continuing")

    # --- Lifecycle operations ------------------------------------------------

    async def attach_identity(self, identity: str) -> CountdownSnapshot:
        """Accept the caller's identity and load any persisted deadline.

        Nothing is read from or written to the store before this is called.
        """
        if not identity:
            raise ValueError("identity must be a non-empty string")
        if self._identity is not None:
            if identity != self._identity:
                raise ControllerStateError("A different identity is already attached")
            return self.snapshot()

        self._identity = identity
        await self._bootstrap(identity)
        return self.snapshot()

    async def _bootstrap(self, identity: str) -> None:
        try:
            deadline_ms = await self._store.load(identity)
        except StoreError as exc:
            logger.error("Failed to load deadline for %s: %s", identity, exc)
            if self._state is LifecycleState.BOOTSTRAPPING and not self._resets_pending:
                self._enter_faulted(LOAD_FAILURE_MESSAGE)
                self._notify()
            return

        if self._state is not LifecycleState.BOOTSTRAPPING or self._resets_pending:
            # A reset overrode bootstrapping while the load was pending.
            return

        if deadline_ms is None:
            self._enter_awaiting_input()
        elif deadline_ms > self._clock():
            self._begin_counting(deadline_ms)
            return
        else:
            logger.info("Loaded deadline for %s has already passed", identity)
            self._deadline_ms = deadline_ms
            self._enter_reached()
            self._schedule_persistence(
                lambda: self._store.delete(identity),
                label="delete",
                identity=identity,
                delay=self._delete_delay,
            )
        self._notify()

    async def submit_days(self, days: int | str) -> CountdownSnapshot:
        """Start a countdown ``days`` days from now.

        Raises:
            DayCountError: If ``days`` is outside the accepted range.
            ControllerStateError: If the controller is not awaiting input.
        """
        if self._identity is None:
            raise ControllerStateError("Identity is not available yet")
        if self._resets_pending:
            raise ControllerStateError("A reset is still in progress")
        if self._state is not LifecycleState.AWAITING_INPUT:
            raise ControllerStateError(f"Cannot start a countdown while {self._state.value}")

        day_count = parse_day_count(days)
        identity = self._identity
        deadline_ms = deadline_for_days(
            day_count,
            self._clock(),
            hour=self._deadline_hour,
            timezone=self._deadline_timezone,
        )
        logger.info("Starting %d day countdown for %s", day_count, identity)

        self._schedule_persistence(
            lambda: self._store.save(identity, deadline_ms),
            label="save",
            identity=identity,
        )
        self._begin_counting(deadline_ms)
        return self.snapshot()

    async def reset(self) -> CountdownSnapshot:
        """Delete the persisted deadline (best effort) and return to awaiting input."""
        if self._identity is None:
            raise ControllerStateError("Identity is not available yet")

        self._resets_pending += 1
        self._stop_ticking()
        self._cancel_generation()
        self._epoch += 1

        identity = self._identity
        delete_task = self._schedule_persistence(
            lambda: self._store.delete(identity),
            label="delete",
            identity=identity,
        )
        try:
            await asyncio.wait([delete_task])
        finally:
            self._resets_pending -= 1

        self._stop_ticking()
        self._cancel_generation()
        self._epoch += 1
        self._deadline_ms = None
        self._remaining = ZERO_REMAINING
        self._dedupe = GenerationDedupeKey()
        self._enter_awaiting_input()
        self._notify()
        return self.snapshot()

    async def close(self) -> None:
        """Stop ticking, abandon generation and wait for pending persistence."""
        pending = [task for task in (self._tick_task, self._generation_task) if task is not None]
        self._stop_ticking()
        self._cancel_generation()
        self._epoch += 1
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        await self.drain()

    async def drain(self) -> None:
        """Wait until scheduled persistence operations have finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # --- Ticking ---------------------------------------------------------------

    def apply_tick(self, now_ms: int | None = None) -> TickOutcome:
        """Advance the countdown to ``now_ms`` and report what must happen next.

        Only state is changed here; tasks are started by ``tick``.
        """
        if self._state is not LifecycleState.COUNTING or self._deadline_ms is None:
            return TickOutcome(self._state, self._remaining)

        now = self._clock() if now_ms is None else now_ms
        remaining = calculate_remaining(self._deadline_ms, now)
        self._remaining = remaining

        if remaining.is_zero:
            self._enter_reached()
            return TickOutcome(
                LifecycleState.REACHED,
                remaining,
                (TickEffect.STOP_TICKING, TickEffect.DELETE_RECORD, TickEffect.CONTENT_CHANGED),
            )

        if remaining.is_deadline_day:
            if self._dedupe.deadline_day_shown:
                return TickOutcome(LifecycleState.COUNTING, remaining)
            pair = select_content_requests(0, True)
            self._content = GeneratedContent(pair.message_request, pair.tip_request)
            self._loading = False
            self._dedupe.deadline_day_shown = True
            self._dedupe.last_day = 0
            return TickOutcome(LifecycleState.COUNTING, remaining, (TickEffect.CONTENT_CHANGED,))

        if not self._dedupe.should_generate(remaining.days):
            return TickOutcome(LifecycleState.COUNTING, remaining)

        request = GenerationRequest(
            day_bucket=remaining.days,
            pair=select_content_requests(remaining.days, False),
            epoch=self._epoch,
        )
        self._dedupe.in_flight = True
        self._loading = True
        self._content = LOADING_CONTENT
        return TickOutcome(
            LifecycleState.COUNTING,
            remaining,
            (TickEffect.GENERATE, TickEffect.CONTENT_CHANGED),
            request,
        )

    def tick(self, now_ms: int | None = None) -> TickOutcome:
        """Apply one tick and perform its side effects."""
        outcome = self.apply_tick(now_ms)
        self._perform(outcome)
        self._notify()
        return outcome

    def _perform(self, outcome: TickOutcome) -> None:
        if TickEffect.GENERATE in outcome.effects and outcome.generation is not None:
            self._generation_task = asyncio.create_task(
                self._run_generation(outcome.generation, self._dedupe)
            )
        if TickEffect.DELETE_RECORD in outcome.effects and self._identity is not None:
            identity = self._identity
            self._schedule_persistence(
                lambda: self._store.delete(identity),
                label="delete",
                identity=identity,
                delay=self._delete_delay,
            )
        if TickEffect.STOP_TICKING in outcome.effects:
            self._stop_ticking()

    async def _run_ticks(self) -> None:
        interval = max(0.01, float(self._tick_interval))
        while self._state is LifecycleState.COUNTING:
            await asyncio.sleep(interval)
            self.tick()

    def _start_ticking(self) -> None:
        self._stop_ticking()
        self._tick_task = asyncio.create_task(self._run_ticks())

    def _stop_ticking(self) -> None:
        task, self._tick_task = self._tick_task, None
        if task is None or task.done():
            return
        if task is not asyncio.current_task():
            task.cancel()

    # --- Generation ------------------------------------------------------------

    def _is_current(self, request: GenerationRequest) -> bool:
        return (
            request.epoch == self._epoch
            and self._state is LifecycleState.COUNTING
            and not self._dedupe.deadline_day_shown
        )

    async def _run_generation(
        self, request: GenerationRequest, dedupe: GenerationDedupeKey
    ) -> None:
        try:
            content = await self._generator.generate(request.pair)
        except GenerationError as exc:
            logger.warning("Content generation for day %d failed: %s", request.day_bucket, exc)
            if self._is_current(request):
                dedupe.failed_day = request.day_bucket
                self._apply_content(exc.fallback)
        except Exception:
            logger.exception("Unexpected error generating content for day %d", request.day_bucket)
            if self._is_current(request):
                dedupe.failed_day = request.day_bucket
                self._apply_content(UNEXPECTED_FAILURE_CONTENT)
        else:
            if self._is_current(request):
                dedupe.last_day = request.day_bucket
                dedupe.failed_day = None
                self._apply_content(content)
            else:
                logger.debug("Discarding stale content for day %d", request.day_bucket)
        finally:
            dedupe.in_flight = False

    def _apply_content(self, content: GeneratedContent) -> None:
        self._content = content
        self._loading = False
        self._notify()

    def _cancel_generation(self) -> None:
        task, self._generation_task = self._generation_task, None
        if task is not None and not task.done():
            task.cancel()

    # --- Persistence -------------------------------------------------------------

    def _schedule_persistence(
        self,
        operation: Callable[[], Awaitable[None]],
        *,
        label: str,
        identity: str,
        delay: float = 0.0,
    ) -> asyncio.Task[None]:
        """Run ``operation`` in the background after all earlier ones finish.

        Failures are logged and dropped; the countdown carries on locally.
        """
        previous = self._persistence_tail

        async def _runner() -> None:
            if previous is not None and not previous.done():
                await asyncio.wait([previous])
            if delay > 0:
                await self._sleep(delay)
            try:
                await operation()
            except StoreError as exc:
                logger.warning("Failed to %s deadline for %s: %s", label, identity, exc)

        task = asyncio.create_task(_runner())
        self._persistence_tail = task
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    # --- State entry helpers -----------------------------------------------------

    def _begin_counting(self, deadline_ms: int) -> None:
        self._epoch += 1
        self._dedupe = GenerationDedupeKey()
        self._deadline_ms = deadline_ms
        self._error = None
        self._state = LifecycleState.COUNTING
        self.tick()
        if self._state is LifecycleState.COUNTING:
            self._start_ticking()

    def _enter_awaiting_input(self) -> None:
        self._state = LifecycleState.AWAITING_INPUT
        self._content = IDLE_CONTENT
        self._loading = False
        self._error = None

    def _enter_reached(self) -> None:
        self._cancel_generation()
        self._epoch += 1
        self._state = LifecycleState.REACHED
        self._remaining = ZERO_REMAINING
        pair = select_content_requests(0, True)
        self._content = GeneratedContent(pair.message_request, pair.tip_request)
        self._loading = False

    def _enter_faulted(self, message: str) -> None:
        self._state = LifecycleState.FAULTED
        self._error = message
        self._content = GeneratedContent(message, message)
        self._loading = False
