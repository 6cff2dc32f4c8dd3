"""
RxStore 的中介軟體定義模組。

中介軟體的形式為 (store, action, next_dispatch) -> None，
可以在動作到達 reducer 之前檢查、改寫、丟棄或轉發動作。
此模組提供以鉤子方法實作中介軟體的基礎類別，以及幾個常用的中介軟體。
"""

import contextlib
import logging
import time
from typing import Any, Callable, Dict, Generator, List, Tuple, Type, Union

from .actions import global_error
from .types import ActionContext, GetState, NextDispatch, StoreProtocol, ThunkFunction

logger = logging.getLogger(__name__)


# 標記 next_state 尚未設置；None 本身是合法的狀態
_UNSET = object()


def _action_type(action: Any) -> str:
    return getattr(action, "type", type(action).__name__)


# ———— Base Middleware ————
class BaseMiddleware:
    """
    基礎中介類，定義所有中介可能實現的鉤子。

    子類可以只覆寫 on_next、on_complete、on_error 其中幾個鉤子，
    __call__ 會透過 action_context 在轉發動作前後呼叫它們。
    需要完全掌控轉發流程的子類 (例如丟棄或延後動作) 則直接覆寫 __call__。
    """

    def __call__(self, store: StoreProtocol, action: Any, next_dispatch: NextDispatch) -> None:
        with self.action_context(action, store.state) as context:
            next_dispatch(action)
            context['next_state'] = store.state

    def on_next(self, action: Any, prev_state: Any) -> None:
        """
        在 action 轉發給下一個環節之前調用。

        Args:
            action: 正在 dispatch 的 Action
            prev_state: dispatch 之前的 store.state
        """
        pass

    def on_complete(self, next_state: Any, action: Any) -> None:
        """
        在下游 (其餘中介軟體與 reducer) 處理完 action 之後調用。

        Args:
            next_state: dispatch 之後的最新 store.state
            action: 剛剛 dispatch 的 Action
        """
        pass

    def on_error(self, error: Exception, action: Any) -> None:
        """
        如果下游拋出異常，則調用此鉤子。異常之後仍會繼續向外拋出。

        Args:
            error: 拋出的異常
            action: 導致異常的 Action
        """
        pass

    def teardown(self) -> None:
        """
        當 Store 清理資源時調用，用於清理中間件持有的資源。
        """
        pass

    @contextlib.contextmanager
    def action_context(self, action: Any, prev_state: Any) -> Generator[ActionContext, None, None]:
        """
        以上下文管理器的形式處理 action 分發的生命週期。

        Args:
            action: 要分發的 Action
            prev_state: 分發前的狀態

        Yields:
            包含上下文數據的字典；在 with 區塊內設置 next_state 以觸發 on_complete
        """
        context: ActionContext = {
            'action': action,
            'prev_state': prev_state,
            'next_state': _UNSET,
            'error': None,
        }

        self.on_next(action, prev_state)

        try:
            yield context
        except Exception as err:
            context['error'] = err
            self.on_error(err, action)
            raise

        if context['next_state'] is not _UNSET:
            self.on_complete(context['next_state'], action)


# ———— LoggerMiddleware ————
class LoggerMiddleware(BaseMiddleware):
    """
    日誌中介，記錄每個 action 發送前和發送後的 state。

    使用場景:
    - 偵錯時需要觀察每次 state 的變化。
    - 確保 action 的執行順序正確。
    """

    def __init__(self, level: int = logging.DEBUG, log: logging.Logger = logger):
        self.level = level
        self.log = log

    def on_next(self, action: Any, prev_state: Any) -> None:
        self.log.log(self.level, "dispatching %s", _action_type(action))
        self.log.log(self.level, "state before %s: %r", _action_type(action), prev_state)

    def on_complete(self, next_state: Any, action: Any) -> None:
        self.log.log(self.level, "state after %s: %r", _action_type(action), next_state)

    def on_error(self, error: Exception, action: Any) -> None:
        self.log.error("error in %s: %s", _action_type(action), error)


# ———— ThunkMiddleware ————
class ThunkMiddleware(BaseMiddleware):
    """
    支援 dispatch 函數 (thunk)，可以在 thunk 內執行邏輯或多次 dispatch。

    範例:
        ```python
        def fetch_user(user_id):
            def thunk(dispatch, get_state):
                dispatch(request_user(user_id))
                try:
                    user = api.fetch_user(user_id)
                    dispatch(request_user_success(user))
                except Exception as e:
                    dispatch(request_user_failure(str(e)))
            return thunk

        store.dispatch(fetch_user("user123"))
        ```
    """

    def __call__(self, store: StoreProtocol, action: Any, next_dispatch: NextDispatch) -> None:
        if callable(action):
            thunk: ThunkFunction = action
            get_state: GetState = lambda: store.state
            thunk(store.dispatch, get_state)
            return
        next_dispatch(action)


# ———— ErrorMiddleware ————
class ErrorMiddleware(BaseMiddleware):
    """
    捕獲下游的異常，dispatch 全域錯誤 Action 之後繼續拋出原異常。

    使用場景:
    - 當需要讓狀態記錄錯誤，或讓 Epic 對錯誤作出反應時。
    """

    def __init__(self) -> None:
        self.store = None
        self._reporting = False

    def __call__(self, store: StoreProtocol, action: Any, next_dispatch: NextDispatch) -> None:
        self.store = store
        super().__call__(store, action, next_dispatch)

    def on_error(self, error: Exception, action: Any) -> None:
        # global_error 自身失敗時不再遞迴回報
        if self._reporting or self.store is None:
            return
        error_info = {
            "error": str(error),
            "error_type": type(error).__name__,
            "action": _action_type(action),
            "timestamp": time.time(),
        }
        self._reporting = True
        try:
            self.store.dispatch(global_error(error_info))
        except Exception:
            # 原始異常會繼續拋出，這裡只記錄回報失敗
            logger.exception("Failed to dispatch global error for %s", _action_type(action))
        finally:
            self._reporting = False


# ———— PerformanceMonitorMiddleware ————
class PerformanceMonitorMiddleware(BaseMiddleware):
    """
    性能監控中間件，記錄每個 action 類型的處理時間。
    """

    def __init__(self, threshold_ms: float = 100, log_all: bool = False):
        """
        Args:
            threshold_ms: 性能警告閾值，單位為毫秒，預設為 100 毫秒
            log_all: 是否記錄所有 action 的耗時，預設只記錄超過閾值的
        """
        self.threshold_ms = threshold_ms
        self.log_all = log_all
        self.metrics: Dict[str, List[float]] = {}

    def __call__(self, store: StoreProtocol, action: Any, next_dispatch: NextDispatch) -> None:
        action_type = _action_type(action)
        start_time = time.perf_counter()
        try:
            next_dispatch(action)
        except Exception as err:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.error("Action %s failed after %.2fms: %s", action_type, elapsed_ms, err)
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self.metrics.setdefault(action_type, []).append(elapsed_ms)
        if elapsed_ms > self.threshold_ms:
            logger.warning(
                "Action %s exceeded threshold (%sms): took %.2fms",
                action_type, self.threshold_ms, elapsed_ms,
            )
        elif self.log_all:
            logger.info("Action %s took %.2fms", action_type, elapsed_ms)

    def get_metrics(self) -> Dict[str, Dict[str, float]]:
        """
        獲取性能指標統計信息。

        Returns:
            每個 action 類型的 avg、max、min 與 count
        """
        result = {}
        for action_type, times in self.metrics.items():
            if not times:
                continue
            result[action_type] = {
                'avg': sum(times) / len(times),
                'max': max(times),
                'min': min(times),
                'count': len(times),
            }
        return result


# ———— TypedMiddleware ————
class TypedMiddleware:
    """
    只對特定 Python 類型的 action 執行的中介軟體。

    其他類型的 action 直接交給 next_dispatch。
    """

    def __init__(
        self,
        action_type: Union[Type[Any], Tuple[Type[Any], ...]],
        middleware: Callable[[Any, Any, NextDispatch], None],
    ):
        self.action_type = action_type
        self.middleware = middleware

    def __call__(self, store: StoreProtocol, action: Any, next_dispatch: NextDispatch) -> None:
        if isinstance(action, self.action_type):
            self.middleware(store, action, next_dispatch)
        else:
            next_dispatch(action)
