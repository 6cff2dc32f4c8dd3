import collections
import logging
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from reactivex import Observable, operators as ops
from reactivex.abc import DisposableBase, SchedulerBase
from reactivex.subject import Subject

from .epic_store import EpicStore
from .epics import epic_name, run_epic
from .errors import ConfigurationError, EpicError, StoreXError, global_error_handler
from .middleware import BaseMiddleware
from .scheduling import DeliveryMode, NextTurnScheduler
from .types import Epic, NextDispatch, StoreProtocol

logger = logging.getLogger(__name__)

S = TypeVar("S")


class EpicMiddlewareOptions(BaseModel):
    """
    EpicMiddleware 的配置選項。

    Attributes:
        delivery: action 投遞給 Epic 的方式，預設為 DEFERRED。
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    delivery: DeliveryMode = DeliveryMode.DEFERRED


class EpicMiddleware(BaseMiddleware, Generic[S]):
    """
    把每個被 dispatch 的 action 送進 Epic，並把 Epic 輸出的 action dispatch 回 Store。

    建議把 EpicMiddleware 放在中介軟體列表的第一個，
    這樣 Epic 輸出的 action 也會經過其餘的中介軟體。

    action 總是先經過其餘中介軟體與 reducer，之後才會被 Epic 看到。
    同一時間最多只有一個 Epic 訂閱 action 流：替換 Epic 時，
    舊 Epic 的訂閱會先被取消，新 Epic 從下一個 action 開始接收，
    替換前的 action 不會重播給新 Epic。

    範例:
        >>> epic_middleware = EpicMiddleware(combine_epics([search_epic, chat_epic]))
        >>> store = Store(reducer, initial_state, middleware=[epic_middleware])
    """

    def __init__(
        self,
        epic: Epic,
        *,
        delivery: DeliveryMode = DeliveryMode.DEFERRED,
        scheduler: Optional[SchedulerBase] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        """
        Args:
            epic: 初始的 Epic
            delivery: IMMEDIATE 在 dispatch 的呼叫堆疊內投遞；DEFERRED 排到下一輪投遞
            scheduler: DEFERRED 模式使用的 reactivex 調度器，預設依執行環境解析
            on_error: Epic 輸出流發生錯誤時的回呼，預設交給 global_error_handler
        """
        try:
            self._options = EpicMiddlewareOptions(delivery=delivery)
        except ValidationError as err:
            raise ConfigurationError(
                "Invalid epic middleware options",
                component="EpicMiddleware",
                config_key="delivery",
                errors=err.errors(),
            ) from err

        self._epic = epic
        self._on_error = on_error
        self._scheduler = NextTurnScheduler(scheduler)

        # action 流：每個被攔截的 action 都會發佈到這裡
        self._actions: Subject = Subject()
        self._action_stream = self._actions.pipe(ops.as_observable())
        # 重入的發佈先排隊，保證每個 Epic 都按 reducer 的順序看到 action
        self._pending: collections.deque = collections.deque()
        self._publishing = False

        self._store: Optional[StoreProtocol[S]] = None
        self._is_subscribed = False
        self._closed = False
        self._subscription: Optional[DisposableBase] = None
        self._generation = 0

    @property
    def delivery(self) -> DeliveryMode:
        return self._options.delivery

    @property
    def support_delayed_reentry(self) -> bool:
        return self._options.delivery is DeliveryMode.DEFERRED

    @property
    def is_subscribed(self) -> bool:
        return self._is_subscribed

    @property
    def epic(self) -> Epic:
        """目前使用中的 Epic。"""
        return self._epic

    @epic.setter
    def epic(self, new_epic: Epic) -> None:
        """
        替換目前使用中的 Epic。

        舊 Epic 的輸出訂閱會被取消 (由 Epic 自行在取消時釋放資源)，
        新 Epic 從下一個 action 開始接收。
        """
        self._epic = new_epic
        if self._is_subscribed and not self._closed:
            self._switch_to(new_epic)

    def __call__(self, store: StoreProtocol[S], action: Any, next_dispatch: NextDispatch) -> None:
        if not self._is_subscribed:
            self._subscribe(store)

        next_dispatch(action)

        if self._options.delivery is DeliveryMode.DEFERRED:
            self._scheduler.schedule(lambda: self._publish(action))
        else:
            self._publish(action)

    def _subscribe(self, store: StoreProtocol[S]) -> None:
        self._store = store
        # 先標記為已訂閱：初始 Epic 可能同步輸出 action 而重入 __call__
        self._is_subscribed = True
        try:
            self._switch_to(self._epic)
        except Exception as err:
            # 初始 Epic 的錯誤不影響這次 dispatch，交給錯誤處理流程
            self._handle_error(err, epic_name(self._epic))

    def _publish(self, action: Any) -> None:
        """
        把 action 發佈給 Epic。

        Epic 在收到 action 時同步 dispatch 的新 action 會先排隊，
        等目前的 action 送達所有 Epic 之後才發佈。
        """
        if self._closed:
            return
        self._pending.append(action)
        if self._publishing:
            return

        self._publishing = True
        try:
            while self._pending and not self._closed:
                self._actions.on_next(self._pending.popleft())
        finally:
            self._publishing = False

    def _cancel_current(self) -> None:
        if self._subscription is not None:
            subscription, self._subscription = self._subscription, None
            subscription.dispose()

    def _switch_to(self, epic: Epic) -> None:
        """
        切換到最新的 Epic。

        先同步取消舊的訂閱再執行新 Epic，確保同一時間最多只有一個 Epic 訂閱。
        若在訂閱期間又發生了切換，剛建立的訂閱屬於過期的 Epic，立即取消。
        """
        self._generation += 1
        generation = self._generation
        self._cancel_current()

        name = epic_name(epic)
        logger.debug("Subscribing epic %s", name)

        output = run_epic(epic, self._action_stream, EpicStore(self._store))
        subscription = output.subscribe(
            on_next=self._store.dispatch,
            on_error=lambda err: self._handle_error(err, name),
        )

        if generation != self._generation or self._closed:
            subscription.dispose()
            return
        self._subscription = subscription

    def _handle_error(self, error: Exception, name: str) -> None:
        """
        Epic 的輸出流發生錯誤。

        該訂閱已經終止；錯誤交給 on_error，否則由全域錯誤處理器記錄。
        """
        logger.debug("Epic %s terminated with %r", name, error)
        if self._on_error is not None:
            self._on_error(error)
            return

        if isinstance(error, StoreXError):
            global_error_handler.handle(error)
            return
        wrapped = EpicError(str(error), epic_name=name, original_type=type(error).__name__)
        wrapped.__cause__ = error
        global_error_handler.handle(wrapped)

    @property
    def actions(self) -> Observable:
        """Epic 所接收的唯讀 action 流。"""
        return self._action_stream

    def teardown(self) -> None:
        """
        取消目前 Epic 的訂閱並結束 action 流。

        teardown 之後尚未投遞的延遲 action 會被丟棄。
        """
        if self._closed:
            return
        self._closed = True
        self._cancel_current()
        self._pending.clear()
        self._actions.on_completed()
