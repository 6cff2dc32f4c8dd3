import inspect
import logging
from typing import Any, Generic, Iterable, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from reactivex import Observable, operators as ops
from reactivex.abc import SchedulerBase
from reactivex.subject import Subject

from .errors import ConfigurationError, MiddlewareError, StoreClosedError
from .scheduling import NextTurnScheduler
from .types import NextDispatch, Reducer

logger = logging.getLogger(__name__)

S = TypeVar("S")


class StoreOptions(BaseModel):
    """
    Store 的配置選項。

    Attributes:
        sync_notify: 為 True 時在 dispatch 內同步發出狀態變更；
            為 False 時排到下一輪發出。
        distinct: 為 True 時，若 reducer 的結果與前一個狀態相等 (==)，
            則不發出變更通知。
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    sync_notify: bool = True
    distinct: bool = False


class Store(Generic[S]):
    """
    狀態容器，只能透過 dispatch 的 action 更新狀態。

    dispatch 會依序穿過中介軟體鏈，最後由 reducer 計算新狀態並通知訂閱者。
    中介軟體鏈在建構時一次建立，之後不再變動。

    範例:
        >>> store = Store(counter_reducer, 0)
        >>> store.on_change.subscribe(print)
        >>> store.dispatch(increment())  # prints 1
    """

    def __init__(
        self,
        reducer: Reducer,
        initial_state: S,
        middleware: Optional[Iterable[Any]] = None,
        *,
        sync_notify: bool = True,
        distinct: bool = False,
        scheduler: Optional[SchedulerBase] = None,
    ):
        """
        建立一個 Store。

        Args:
            reducer: 根據目前狀態與 action 計算新狀態的函數。
            initial_state: 初始狀態。
            middleware: 中介軟體列表，依列表順序執行；類別會被無參數實例化。
            sync_notify: 是否同步發出狀態變更通知。
            distinct: 是否略過與前一個狀態相等的通知。
            scheduler: 非同步通知使用的 reactivex 調度器。
        """
        try:
            self._options = StoreOptions(sync_notify=sync_notify, distinct=distinct)
        except ValidationError as err:
            raise ConfigurationError(
                "Invalid store options", component="Store", errors=err.errors()
            ) from err

        self._reducer = reducer
        self._state = initial_state
        self._closed = False
        # 狀態流（Subject），只發出建構之後產生的新狀態
        self._change_subject: Subject = Subject()
        self._on_change = self._change_subject.pipe(ops.as_observable())
        self._notify_scheduler = NextTurnScheduler(scheduler)

        self._middleware = [self._instantiate(m) for m in (middleware or [])]
        self._dispatchers = self._create_dispatchers(self._middleware, self._reduce_and_notify)

    @staticmethod
    def _instantiate(mw: Any) -> Any:
        inst = mw() if inspect.isclass(mw) else mw
        if not callable(inst):
            raise MiddlewareError(
                "Middleware must be callable as (store, action, next_dispatch)",
                middleware_name=type(inst).__name__,
            )
        return inst

    def _create_dispatchers(
        self, middleware: List[Any], reduce_and_notify: NextDispatch
    ) -> List[NextDispatch]:
        """
        從尾端往前構建中介軟體鏈。

        chain[n] 是 reduce_and_notify，chain[i] 呼叫第 i 個中介軟體並把
        chain[i + 1] 作為它的 next_dispatch。dispatch 永遠從 chain[0] 開始。

        Returns:
            依執行順序排列的 dispatch 函數列表。
        """
        dispatchers: List[NextDispatch] = [reduce_and_notify]

        for mw in reversed(middleware):
            dispatchers.append(self._link(mw, dispatchers[-1]))

        dispatchers.reverse()
        return dispatchers

    def _link(self, mw: Any, next_dispatch: NextDispatch) -> NextDispatch:
        def dispatch(action: Any) -> None:
            mw(self, action, next_dispatch)
        return dispatch

    def _reduce_and_notify(self, action: Any) -> None:
        """
        鏈的最後一環：執行 reducer、保存結果並通知訂閱者。

        reducer 在賦值之前執行，因此 reducer 拋出異常時狀態保持不變。
        """
        if self._closed:
            raise StoreClosedError(action=repr(action))

        new_state = self._reducer(self._state, action)

        if self._options.distinct and new_state == self._state:
            self._state = new_state
            return

        self._state = new_state
        self._emit(new_state)

    def _emit(self, state: S) -> None:
        if self._options.sync_notify:
            self._change_subject.on_next(state)
        else:
            self._notify_scheduler.schedule(lambda: self._change_subject.on_next(state))

    def dispatch(self, action: Any) -> None:
        """
        分發一個動作。

        動作依序經過所有中介軟體，如果每個中介軟體都呼叫了 next_dispatch，
        最後會交給 reducer。此方法同步執行到結束才返回。

        Args:
            action: 要分發的動作。
        """
        self._dispatchers[0](action)

    @property
    def state(self) -> S:
        """最近一次提交的狀態。"""
        return self._state

    @property
    def on_change(self) -> Observable:
        """
        狀態變更流。

        每個訂閱者從訂閱時開始收到每個新狀態，不會重播舊值。
        Store teardown 之後訂閱會立即收到完成通知。
        """
        return self._on_change

    @property
    def reducer(self) -> Reducer:
        return self._reducer

    @reducer.setter
    def reducer(self, reducer: Reducer) -> None:
        """替換之後的 dispatch 所使用的 reducer。"""
        self._reducer = reducer

    @property
    def middleware(self) -> List[Any]:
        return list(self._middleware)

    @property
    def options(self) -> StoreOptions:
        return self._options

    @property
    def is_closed(self) -> bool:
        return self._closed

    def teardown(self) -> None:
        """
        關閉 Store：完成狀態變更流並讓中介軟體釋放資源。

        已經發出的狀態不受影響。重複呼叫不會有任何效果。
        """
        if self._closed:
            return
        self._closed = True

        for mw in self._middleware:
            teardown = getattr(mw, "teardown", None)
            if callable(teardown):
                teardown()

        self._change_subject.on_completed()
        logger.debug("Store torn down")

    def __enter__(self) -> "Store[S]":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.teardown()


def create_store(
    reducer: Reducer,
    initial_state: S,
    middleware: Optional[Iterable[Any]] = None,
    **options: Any,
) -> Store[S]:
    """
    創建一個新的 Store 實例。

    Args:
        reducer: 根 reducer。
        initial_state: 初始狀態。
        middleware: 中介軟體列表。
        **options: 傳給 Store 的選項 (sync_notify, distinct, scheduler)。

    Returns:
        Store: 新創建的 Store 實例。
    """
    return Store(reducer, initial_state, middleware, **options)
