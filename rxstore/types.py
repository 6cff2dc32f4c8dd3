"""
RxStore 共用的類型定義模組。

集中定義 Reducer、中介軟體、Epic 等函數簽名與協議，
供其他模組與類型存根檔案引用。
"""
from typing import Any, Callable, Dict, Protocol, TypeVar

from reactivex import Observable


S = TypeVar("S")  # 狀態類型
A = TypeVar("A")  # Action 類型
P = TypeVar("P")  # 負載類型
T = TypeVar("T")

# (state, action) -> new_state
Reducer = Callable[[S, A], S]

# 將 action 交給鏈中的下一個環節
NextDispatch = Callable[[Any], None]

DispatchFunction = Callable[[Any], None]

GetState = Callable[[], Any]

ThunkFunction = Callable[[DispatchFunction, GetState], Any]

# 動作處理過程中在中介軟體內部傳遞的上下文
ActionContext = Dict[str, Any]


class StoreProtocol(Protocol[S]):
    """中介軟體可見的 Store 介面。"""

    @property
    def state(self) -> S: ...

    @property
    def on_change(self) -> Observable: ...

    def dispatch(self, action: Any) -> None: ...


class Middleware(Protocol):
    """
    中介軟體協議。

    中介軟體接收 store、action 以及下一個 dispatch 函數，
    可以檢查、改寫、丟棄或轉發 action，也可以 dispatch 新的 action。
    """

    def __call__(self, store: Any, action: Any, next_dispatch: NextDispatch) -> None: ...


class EpicStoreProtocol(Protocol[S]):
    """Epic 可見的唯讀 Store 介面，不包含 dispatch。"""

    @property
    def state(self) -> S: ...

    @property
    def on_change(self) -> Observable: ...


# (action$, store) -> action$
Epic = Callable[[Observable, EpicStoreProtocol], Observable]


class ActionCreator(Protocol):
    """帶有 type 屬性的 Action 生成器。"""

    type: str

    def __call__(self, *args: Any, **kwargs: Any) -> Any: ...


__all__ = [
    "S", "A", "P", "T",
    "Reducer", "NextDispatch", "DispatchFunction", "GetState", "ThunkFunction",
    "ActionContext", "StoreProtocol", "Middleware", "EpicStoreProtocol",
    "Epic", "ActionCreator",
]
