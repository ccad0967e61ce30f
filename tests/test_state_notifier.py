import asyncio

import pytest

from coepi_sync.models.domain.operation_state import OperationState, OperationStatus
from coepi_sync.services.state_notifier import OperationStateNotifier


@pytest.mark.asyncio
async def test_every_subscriber_receives_published_states():
    notifier = OperationStateNotifier()
    first = notifier.subscribe()
    second = notifier.subscribe()

    notifier.publish(OperationState.in_progress())
    notifier.publish(OperationState.succeeded())

    for subscription in (first, second):
        assert (await subscription.get()).status == OperationStatus.IN_PROGRESS
        assert (await subscription.get()).status == OperationStatus.SUCCEEDED


@pytest.mark.asyncio
async def test_late_subscriber_sees_no_replay():
    notifier = OperationStateNotifier()
    notifier.publish(OperationState.in_progress())

    late = notifier.subscribe()
    assert late.get_nowait() is None

    notifier.publish(OperationState.idle())
    assert late.get_nowait() == OperationState.idle()


@pytest.mark.asyncio
async def test_async_iteration_until_terminal_state():
    notifier = OperationStateNotifier()
    error = RuntimeError("offline")

    async with notifier.subscribe() as states:
        notifier.publish(OperationState.in_progress())
        notifier.publish(OperationState.failed(error))
        received = []
        async for state in states:
            received.append(state)
            if state.is_terminal:
                break

    assert [s.status for s in received] == [OperationStatus.IN_PROGRESS, OperationStatus.FAILED]
    assert received[1].error is error
    assert notifier.subscriber_count == 0


def test_listeners_are_called_synchronously():
    notifier = OperationStateNotifier()
    seen = []
    notifier.add_listener(seen.append)

    notifier.publish(OperationState.in_progress())
    notifier.remove_listener(seen.append)
    notifier.publish(OperationState.idle())

    assert seen == [OperationState.in_progress()]


def test_failing_listener_does_not_block_others():
    notifier = OperationStateNotifier()
    seen = []

    def broken(state):
        raise ValueError("listener bug")

    notifier.add_listener(broken)
    notifier.add_listener(seen.append)
    notifier.publish(OperationState.succeeded())

    assert seen == [OperationState.succeeded()]


@pytest.mark.asyncio
async def test_close_wakes_consumer_blocked_on_subscription():
    notifier = OperationStateNotifier()
    subscription = notifier.subscribe()

    async def consume():
        return [state async for state in subscription]

    consumer = asyncio.create_task(consume())
    await asyncio.sleep(0)  # consumer is now waiting for a state
    notifier.publish(OperationState.in_progress())
    await asyncio.sleep(0)
    subscription.close()

    done, _ = await asyncio.wait({consumer}, timeout=0.5)

    assert consumer in done
    assert consumer.result() == [OperationState.in_progress()]
    assert await subscription.get() is None
    assert subscription.get_nowait() is None


@pytest.mark.asyncio
async def test_states_buffered_before_close_are_still_delivered():
    notifier = OperationStateNotifier()
    subscription = notifier.subscribe()

    notifier.publish(OperationState.in_progress())
    notifier.publish(OperationState.succeeded())
    subscription.close()
    notifier.publish(OperationState.idle())

    received = [state async for state in subscription]

    assert [s.status for s in received] == [OperationStatus.IN_PROGRESS, OperationStatus.SUCCEEDED]
