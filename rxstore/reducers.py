from typing import Any, Callable, Generic, Tuple, Type, TypeVar, Union

from .types import Reducer

S = TypeVar("S")


def create_reducer(initial_state: S, *handlers) -> Reducer:
    """
    創建一個 reducer 函式，根據 Action.type 選擇處理函式。

    Args:
        initial_state: 初始狀態。
        *handlers: 一系列 (action_type, handler_fn) 元組或使用 on 函式創建的處理器。

    Returns:
        一個 reducer 函式，沒有對應處理器的 action 會原樣返回狀態。
    """
    action_handlers = {}

    for handler in handlers:
        if isinstance(handler, tuple) and len(handler) == 2:
            action_type, handler_fn = handler
            action_handlers[_type_key(action_type)] = handler_fn
        else:
            action_handlers.update(handler)

    def reducer(state: S = initial_state, action: Any = None) -> S:
        if action is None:
            return state
        handler = action_handlers.get(getattr(action, "type", None))
        if handler:
            return handler(state, action)
        return state

    reducer.initial_state = initial_state
    reducer.handlers = action_handlers
    return reducer


def _type_key(action_creator_or_type: Any) -> str:
    if callable(action_creator_or_type) and hasattr(action_creator_or_type, "type"):
        return action_creator_or_type.type
    return str(action_creator_or_type)


def on(action_creator_or_type, handler):
    """
    創建一個 action 類型與處理函式的映射。

    Args:
        action_creator_or_type: Action 創建器函式或 Action 類型字串。
        handler: 處理該 Action 的函式，接收 (state, action) 並返回新狀態。

    Returns:
        一個包含 {action_type: handler} 的字典。
    """
    return {_type_key(action_creator_or_type): handler}


class TypedReducer(Generic[S]):
    """
    只處理特定 Python 類型 action 的 reducer。

    其他類型的 action 會原樣返回狀態，適合與 combine_reducers 搭配，
    讓每個 reducer 只關心自己那一種 action。
    """

    def __init__(self, action_type: Union[Type[Any], Tuple[Type[Any], ...]], reducer: Callable[[S, Any], S]):
        self.action_type = action_type
        self.reducer = reducer

    def __call__(self, state: S, action: Any) -> S:
        if isinstance(action, self.action_type):
            return self.reducer(state, action)
        return state


def combine_reducers(*reducers: Reducer) -> Reducer:
    """
    將多個作用於同一狀態的 reducer 依序串接成一個。

    Args:
        *reducers: 依序執行的 reducer。

    Returns:
        一個 reducer，狀態依序流經每個 reducer。
    """
    def combined(state: Any, action: Any) -> Any:
        for reducer in reducers:
            state = reducer(state, action)
        return state

    return combined
