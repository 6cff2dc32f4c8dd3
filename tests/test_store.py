"""Tests a basic rxstore store."""
from typing import List, NamedTuple, Union

import anyio
import pytest

from rxstore import ConfigurationError, MiddlewareError, Store, StoreClosedError, create_store


class Increment(NamedTuple):
    """Action to increment the counter."""


class Decrement(NamedTuple):
    """Action to decrement the counter."""


class Noop(NamedTuple):
    """Action that leaves the counter alone."""


Actions = Union[Increment, Decrement, Noop]


def counter_reducer(state: int, action: Actions) -> int:
    if isinstance(action, Increment):
        return state + 1
    if isinstance(action, Decrement):
        return state - 1
    return state


def record(store: Store) -> List[int]:
    results: List[int] = []
    store.on_change.subscribe(on_next=results.append)
    return results


def test_initial_state() -> None:
    subject = Store(counter_reducer, 0)
    assert subject.state == 0


def test_dispatch_increments_and_decrements() -> None:
    subject = Store(counter_reducer, 0)
    results = record(subject)

    subject.dispatch(Increment())
    subject.dispatch(Increment())
    subject.dispatch(Decrement())

    assert subject.state == 1
    assert results == [1, 2, 1]


def test_state_is_left_fold_of_actions() -> None:
    actions = [Increment(), Decrement(), Increment(), Increment(), Noop(), Decrement()]
    subject = Store(counter_reducer, 10)

    for action in actions:
        subject.dispatch(action)

    expected = 10
    for action in actions:
        expected = counter_reducer(expected, action)
    assert subject.state == expected


def test_dispatch_returns_none() -> None:
    subject = Store(counter_reducer, 0)
    assert subject.dispatch(Increment()) is None


def test_on_change_only_emits_after_subscription() -> None:
    subject = Store(counter_reducer, 0)
    early = record(subject)

    subject.dispatch(Decrement())
    late = record(subject)
    subject.dispatch(Decrement())
    subject.dispatch(Decrement())

    assert early == [-1, -2, -3]
    assert late == [-2, -3]


def test_no_distinct_emits_equal_state() -> None:
    subject = Store(counter_reducer, 0)
    results = record(subject)

    subject.dispatch(Noop())

    assert results == [0]


def test_distinct_skips_equal_state() -> None:
    subject = Store(lambda state, action: list(state), [1, 2], distinct=True)
    previous = subject.state
    results = record(subject)

    subject.dispatch(Noop())

    assert results == []
    assert subject.state == [1, 2]
    # the equal value returned by the reducer is still committed
    assert subject.state is not previous


def test_distinct_emits_changed_state() -> None:
    subject = Store(counter_reducer, 0, distinct=True)
    results = record(subject)

    subject.dispatch(Increment())
    subject.dispatch(Noop())
    subject.dispatch(Increment())

    assert results == [1, 2]


def test_reducer_fault_leaves_state_unchanged() -> None:
    def _broken(state: int, action: Actions) -> int:
        if isinstance(action, Decrement):
            raise ValueError("no negatives")
        return counter_reducer(state, action)

    subject = Store(_broken, 0)
    results = record(subject)
    subject.dispatch(Increment())

    with pytest.raises(ValueError, match="no negatives"):
        subject.dispatch(Decrement())

    assert subject.state == 1
    assert results == [1]


def test_replace_reducer() -> None:
    subject = Store(counter_reducer, 0)
    subject.dispatch(Increment())

    subject.reducer = lambda state, action: state * 10
    subject.dispatch(Increment())

    assert subject.state == 10


def test_teardown_completes_on_change() -> None:
    subject = Store(counter_reducer, 0)
    completed = []
    subject.on_change.subscribe(on_completed=lambda: completed.append(True))

    subject.teardown()

    assert completed == [True]
    assert subject.is_closed


def test_subscribe_after_teardown_is_already_closed() -> None:
    subject = Store(counter_reducer, 0)
    subject.teardown()
    results = []
    completed = []

    subject.on_change.subscribe(on_next=results.append, on_completed=lambda: completed.append(True))

    assert results == []
    assert completed == [True]


def test_dispatch_after_teardown_raises() -> None:
    subject = Store(counter_reducer, 0)
    subject.dispatch(Increment())
    subject.teardown()

    with pytest.raises(StoreClosedError):
        subject.dispatch(Increment())

    assert subject.state == 1


def test_teardown_twice_is_noop() -> None:
    torn_down = []

    class _Middleware:
        def __call__(self, store, action, next_dispatch):
            next_dispatch(action)

        def teardown(self):
            torn_down.append(True)

    subject = Store(counter_reducer, 0, [_Middleware()])
    subject.teardown()
    subject.teardown()

    assert torn_down == [True]


def test_context_manager_tears_down() -> None:
    with Store(counter_reducer, 0) as subject:
        subject.dispatch(Increment())

    assert subject.is_closed
    assert subject.state == 1


def test_invalid_options_raise() -> None:
    with pytest.raises(ConfigurationError):
        Store(counter_reducer, 0, distinct="sometimes")  # type: ignore[arg-type]


def test_non_callable_middleware_raises() -> None:
    with pytest.raises(MiddlewareError):
        Store(counter_reducer, 0, [42])


def test_create_store() -> None:
    subject = create_store(counter_reducer, 5, distinct=True)

    subject.dispatch(Increment())

    assert subject.state == 6
    assert subject.options.distinct is True
    assert subject.options.sync_notify is True


@pytest.mark.anyio
async def test_async_notify_emits_on_next_turn() -> None:
    subject = Store(counter_reducer, 0, sync_notify=False)
    results = record(subject)

    subject.dispatch(Increment())
    subject.dispatch(Increment())
    subject.dispatch(Decrement())

    assert subject.state == 1
    assert results == []

    await anyio.sleep(0.01)

    assert results == [1, 2, 1]
