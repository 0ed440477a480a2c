"""One countdown controller per identity."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from deadline_coach.core.settings import settings
from deadline_coach.services.controller import CountdownController, LifecycleState
from deadline_coach.services.deadline_store import DeadlineStore, get_deadline_store
from deadline_coach.services.generation import ContentGenerationClient

logger = logging.getLogger(__name__)

# Controllers in these states hold nothing that is not already persisted.
EVICTABLE_STATES = frozenset({LifecycleState.AWAITING_INPUT, LifecycleState.REACHED})


class CountdownRegistry:
    """Creates controllers on first use and closes them on shutdown.

    A controller left FAULTED by a failed load is replaced on the next access,
    so a transient store error does not outlive the request that hit it.
    Controllers idle in AWAITING_INPUT or REACHED for longer than
    ``idle_timeout`` seconds are closed and dropped.
    """

    def __init__(
        self,
        store: DeadlineStore | None = None,
        generator: ContentGenerationClient | None = None,
        *,
        controller_factory: Callable[[], CountdownController] | None = None,
        idle_timeout: float | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store or get_deadline_store()
        self._generator = generator or ContentGenerationClient()
        self._factory = controller_factory or self._default_factory
        self._idle_timeout = (
            settings.controller_idle_seconds if idle_timeout is None else idle_timeout
        )
        self._monotonic = monotonic
        self._controllers: dict[str, CountdownController] = {}
        self._last_access: dict[str, float] = {}
        self._lock = asyncio.Lock()

    def _default_factory(self) -> CountdownController:
        return CountdownController(self._store, self._generator)

    def __len__(self) -> int:
        return len(self._controllers)

    def __contains__(self, identity: object) -> bool:
        return identity in self._controllers

    async def get(self, identity: str) -> CountdownController:
        """Return the controller for ``identity``, bootstrapping it if new."""
        retired: list[CountdownController] = []
        async with self._lock:
            now = self._monotonic()
            retired.extend(self._evict_idle(now, keep=identity))

            controller = self._controllers.get(identity)
            if controller is not None and controller.state is LifecycleState.FAULTED:
                logger.info("Retrying load for faulted countdown of %s", identity)
                retired.append(controller)
                controller = None
            if controller is None:
                controller = self._factory()
                self._controllers[identity] = controller
                logger.debug("Created countdown controller for %s", identity)
            self._last_access[identity] = now

        for stale in retired:
            await stale.close()
        await controller.attach_identity(identity)
        return controller

    def _evict_idle(self, now: float, *, keep: str) -> list[CountdownController]:
        evicted = []
        for identity, controller in list(self._controllers.items()):
            if identity == keep or controller.state not in EVICTABLE_STATES:
                continue
            if now - self._last_access.get(identity, now) < self._idle_timeout:
                continue
            del self._controllers[identity]
            self._last_access.pop(identity, None)
            evicted.append(controller)
        if evicted:
            logger.debug("Evicted %d idle countdown controllers", len(evicted))
        return evicted

    async def close_all(self) -> None:
        """Stop every controller and release the generation client."""
        async with self._lock:
            controllers = list(self._controllers.values())
            self._controllers.clear()
            self._last_access.clear()
        for controller in controllers:
            await controller.close()
        await self._generator.close()
