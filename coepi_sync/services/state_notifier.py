"""
OperationStateNotifier - single-producer, multi-consumer state broadcast.

Subscribers only see states published after they subscribed (no replay).
Each async subscriber gets its own unbounded queue so a slow reader never
blocks the producer or other readers.

Usage:
    notifier = OperationStateNotifier()

    async with notifier.subscribe() as states:
        async for state in states:
            if state.is_terminal:
                break

    notifier.add_listener(lambda state: print(state.status))
"""
import asyncio
import logging
from typing import Callable, List, Optional

from coepi_sync.models.domain.operation_state import OperationState

logger = logging.getLogger(__name__)

StateListener = Callable[[OperationState], None]

# Queued by close() to end iteration
_CLOSED = object()


class StateSubscription:
    """
    Async iterator over the states published while subscribed

    close() ends iteration, waking a consumer blocked waiting for a state.
    """

    def __init__(self, notifier: 'OperationStateNotifier'):
        self._notifier = notifier
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def _push(self, state: OperationState):
        self._queue.put_nowait(state)

    async def get(self) -> Optional[OperationState]:
        """Next state; None once the subscription is closed and drained"""
        state = await self._queue.get()
        if state is _CLOSED:
            # Keep the marker queued so later reads end too
            self._queue.put_nowait(_CLOSED)
            return None
        return state

    def get_nowait(self) -> Optional[OperationState]:
        """Next buffered state, or None if nothing is pending"""
        try:
            state = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        if state is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            return None
        return state

    def close(self):
        if not self.closed:
            self.closed = True
            self._notifier._remove(self)
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> 'StateSubscription':
        return self

    async def __anext__(self) -> OperationState:
        state = await self.get()
        if state is None:
            raise StopAsyncIteration
        return state

    async def __aenter__(self) -> 'StateSubscription':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()


class OperationStateNotifier:
    """Publish point for OperationState transitions"""

    def __init__(self):
        self._subscriptions: List[StateSubscription] = []
        self._listeners: List[StateListener] = []

    def subscribe(self) -> StateSubscription:
        subscription = StateSubscription(self)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: StateSubscription):
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def add_listener(self, listener: StateListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions) + len(self._listeners)

    def publish(self, state: OperationState):
        """Deliver state to every current subscriber and listener"""
        logger.debug(f"Operation state -> {state.status.value}")
        for subscription in list(self._subscriptions):
            subscription._push(state)
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"State listener failed: {e}", exc_info=True)
