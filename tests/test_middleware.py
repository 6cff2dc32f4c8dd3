"""Tests the middleware chain and the bundled middleware."""
import logging
from typing import Any, List, NamedTuple, Tuple

import pytest

from rxstore import (
    Action,
    BaseMiddleware,
    ErrorMiddleware,
    LoggerMiddleware,
    PerformanceMonitorMiddleware,
    Store,
    ThunkMiddleware,
    TypedMiddleware,
    create_action,
    create_reducer,
    global_error,
    on,
)


class Add(NamedTuple):
    """Action to add an amount to the counter."""

    amount: int


class Reset(NamedTuple):
    """Action to reset the counter."""


def counter_reducer(state: int, action: Any) -> int:
    if isinstance(action, Add):
        return state + action.amount
    if isinstance(action, Reset):
        return 0
    return state


def history_reducer(state: Tuple[Any, ...], action: Any) -> Tuple[Any, ...]:
    return state + (action,)


def test_middleware_run_in_list_order() -> None:
    log: List[str] = []

    def _m0(store, action, next_dispatch):
        log.append("m0")
        next_dispatch(action)

    def _m1(store, action, next_dispatch):
        log.append("m1")
        next_dispatch(action)

    subject = Store(counter_reducer, 0, [_m0, _m1])
    subject.dispatch(Add(1))

    assert log == ["m0", "m1"]
    assert subject.state == 1


def test_middleware_after_next_unwinds_in_reverse() -> None:
    log: List[str] = []

    def _tracing(name):
        def _middleware(store, action, next_dispatch):
            log.append(f"{name}:before")
            next_dispatch(action)
            log.append(f"{name}:after")
        return _middleware

    subject = Store(counter_reducer, 0, [_tracing("a"), _tracing("b")])
    subject.dispatch(Add(1))

    assert log == ["a:before", "b:before", "b:after", "a:after"]


def test_swallowing_middleware_stops_the_action() -> None:
    downstream: List[Any] = []
    results: List[int] = []

    def _swallow(store, action, next_dispatch):
        pass

    def _downstream(store, action, next_dispatch):
        downstream.append(action)
        next_dispatch(action)

    subject = Store(counter_reducer, 0, [_swallow, _downstream])
    subject.on_change.subscribe(on_next=results.append)
    subject.dispatch(Add(5))

    assert subject.state == 0
    assert results == []
    assert downstream == []


def test_middleware_can_transform_action() -> None:
    def _double(store, action, next_dispatch):
        if isinstance(action, Add):
            action = Add(action.amount * 2)
        next_dispatch(action)

    subject = Store(counter_reducer, 0, [_double])
    subject.dispatch(Add(3))

    assert subject.state == 6


def test_middleware_fault_aborts_dispatch() -> None:
    reached: List[Any] = []

    def _fails(store, action, next_dispatch):
        raise RuntimeError("rejected")

    def _downstream(store, action, next_dispatch):
        reached.append(action)
        next_dispatch(action)

    subject = Store(counter_reducer, 0, [_fails, _downstream])

    with pytest.raises(RuntimeError, match="rejected"):
        subject.dispatch(Add(1))

    assert reached == []
    assert subject.state == 0


def test_reentrant_dispatch_runs_depth_first() -> None:
    def _reset_then_add(store, action, next_dispatch):
        if isinstance(action, Add) and action.amount == 100:
            store.dispatch(Reset())
        next_dispatch(action)

    subject = Store(history_reducer, (), [_reset_then_add])
    subject.dispatch(Add(100))

    assert subject.state == (Reset(), Add(100))


def test_middleware_class_is_instantiated() -> None:
    class _Counting:
        instances = 0

        def __init__(self):
            type(self).instances += 1
            self.seen = []

        def __call__(self, store, action, next_dispatch):
            self.seen.append(action)
            next_dispatch(action)

    subject = Store(counter_reducer, 0, [_Counting])
    subject.dispatch(Add(1))

    assert _Counting.instances == 1
    assert subject.middleware[0].seen == [Add(1)]


def test_base_middleware_hooks() -> None:
    calls: List[Tuple[str, Any, Any]] = []

    class _Hooks(BaseMiddleware):
        def on_next(self, action, prev_state):
            calls.append(("next", action, prev_state))

        def on_complete(self, next_state, action):
            calls.append(("complete", action, next_state))

        def on_error(self, error, action):
            calls.append(("error", action, str(error)))

    def _reducer(state, action):
        if action == "boom":
            raise ValueError("boom")
        return counter_reducer(state, action)

    subject = Store(_reducer, 1, [_Hooks()])
    subject.dispatch(Add(2))

    with pytest.raises(ValueError):
        subject.dispatch("boom")

    assert calls == [
        ("next", Add(2), 1),
        ("complete", Add(2), 3),
        ("next", "boom", 3),
        ("error", "boom", "boom"),
    ]


def test_thunk_middleware() -> None:
    seen_states: List[int] = []

    def _add_twice(amount):
        def _thunk(dispatch, get_state):
            dispatch(Add(amount))
            seen_states.append(get_state())
            dispatch(Add(amount))
        return _thunk

    subject = Store(counter_reducer, 0, [ThunkMiddleware])
    subject.dispatch(_add_twice(2))
    subject.dispatch(Add(1))

    assert seen_states == [2]
    assert subject.state == 5


def test_error_middleware_dispatches_global_error() -> None:
    explode = create_action("explode")
    reducer = create_reducer(
        {"error": None},
        on(explode, lambda state, action: 1 / 0),
        on(global_error, lambda state, action: {**state, "error": action.payload["error_type"]}),
    )
    subject = Store(reducer, reducer.initial_state, [ErrorMiddleware])

    with pytest.raises(ZeroDivisionError):
        subject.dispatch(explode())

    assert subject.state == {"error": "ZeroDivisionError"}


def test_error_middleware_does_not_loop_when_global_error_fails() -> None:
    def _reducer(state, action):
        raise KeyError("always")

    subject = Store(_reducer, 0, [ErrorMiddleware])

    with pytest.raises(KeyError):
        subject.dispatch(Action("anything"))


def test_performance_monitor_collects_metrics() -> None:
    monitor = PerformanceMonitorMiddleware(threshold_ms=10_000)
    subject = Store(counter_reducer, 0, [monitor])

    subject.dispatch(Add(1))
    subject.dispatch(Add(1))
    subject.dispatch(Reset())

    metrics = monitor.get_metrics()
    assert metrics["Add"]["count"] == 2
    assert metrics["Reset"]["count"] == 1
    assert metrics["Add"]["min"] <= metrics["Add"]["max"]


def test_performance_monitor_warns_above_threshold(caplog: pytest.LogCaptureFixture) -> None:
    monitor = PerformanceMonitorMiddleware(threshold_ms=-1)
    subject = Store(counter_reducer, 0, [monitor])

    with caplog.at_level(logging.WARNING, logger="rxstore.middleware"):
        subject.dispatch(Add(1))

    assert "exceeded threshold" in caplog.text


def test_typed_middleware_only_sees_its_type() -> None:
    seen: List[Any] = []

    def _record(store, action, next_dispatch):
        seen.append(action)
        next_dispatch(action)

    subject = Store(counter_reducer, 0, [TypedMiddleware(Reset, _record)])
    subject.dispatch(Add(3))
    subject.dispatch(Reset())

    assert seen == [Reset()]
    assert subject.state == 0


def test_logger_middleware(caplog: pytest.LogCaptureFixture) -> None:
    increment = create_action("[Counter] Increment")
    reducer = create_reducer(0, on(increment, lambda state, action: state + 1))
    subject = Store(reducer, 0, [LoggerMiddleware(level=logging.INFO)])

    with caplog.at_level(logging.INFO, logger="rxstore.middleware"):
        subject.dispatch(increment())

    assert "dispatching [Counter] Increment" in caplog.text
    assert "state after [Counter] Increment: 1" in caplog.text


def test_base_middleware_completes_when_next_state_is_none() -> None:
    completed: List[Tuple[Any, Any]] = []

    class _Hooks(BaseMiddleware):
        def on_complete(self, next_state, action):
            completed.append((action, next_state))

    subject = Store(lambda state, action: None, 0, [_Hooks()])
    subject.dispatch(Reset())

    assert subject.state is None
    assert completed == [(Reset(), None)]
