"""
RxStore 的 Action 定義模組。

Store 核心不對 action 的結構作任何假設，任何值都可以被 dispatch。
此模組提供一個常用的 Action 記錄類別以及 Action 生成器，
方便以字串類型區分動作，並與 of_type、create_reducer 等工具搭配使用。
"""
from typing import Any, Callable, Dict, Generic, Optional, Union

from .immutable_utils import to_immutable
from .types import P, ActionCreator


class Action(Generic[P]):
    """
    表示一個有類型和可選負載的動作。

    泛型參數:
        P: 負載的類型

    屬性:
        type: 動作的類型字符串
        payload: 動作的負載數據（可選）
    """
    __slots__ = ('type', 'payload')

    def __init__(self, type: str, payload: Optional[P] = None):
        super().__setattr__('type', type)
        super().__setattr__('payload', payload)

    def __setattr__(self, name, value):
        if name not in self.__slots__:
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")
        raise AttributeError(f"Cannot modify immutable instance attribute '{name}'")

    def __eq__(self, other):
        if not isinstance(other, Action):
            return NotImplemented
        return self.type == other.type and self.payload == other.payload

    def __hash__(self):
        return hash((self.type, self.payload))

    def __repr__(self):
        return f"Action(type='{self.type}', payload={self.payload!r})"


def _process_payload(payload: Any) -> Any:
    """將字典負載 (連同巢狀的 list 與 dict) 轉換為不可變結構，使 Action 可雜湊。"""
    if isinstance(payload, dict):
        return to_immutable(payload)
    return payload


def create_action(action_type: str, prepare_fn: Optional[Callable[..., Any]] = None) -> ActionCreator:
    """
    創建一個 Action 生成器函數。

    Args:
        action_type: Action 的類型標識符
        prepare_fn: 可選的預處理函數，用於在創建 Action 前處理輸入參數

    Returns:
        一個可調用的函數，用於生成指定類型的 Action

    範例:
        >>> increment = create_action("[Counter] Increment")
        >>> increment()
        Action(type='[Counter] Increment', payload=None)
        >>> add = create_action("[Counter] Add", lambda amount: amount)
        >>> add(5)
        Action(type='[Counter] Add', payload=5)
    """
    def action_creator(*args: Any, **kwargs: Any) -> Action[Any]:
        if prepare_fn:
            return Action(action_type, _process_payload(prepare_fn(*args, **kwargs)))
        if len(args) == 1 and not kwargs:
            return Action(action_type, _process_payload(args[0]))
        if args or kwargs:
            payload: Dict[Union[int, str], Any] = dict(zip(range(len(args)), args))
            payload.update(kwargs)
            return Action(action_type, _process_payload(payload))
        return Action(action_type)

    action_creator.type = action_type  # type: ignore[attr-defined]
    action_creator.__name__ = f"create_{action_type}"
    return action_creator  # type: ignore[return-value]


# 由 ErrorMiddleware 在 dispatch 失敗時發出
global_error = create_action("[Error] GlobalError", lambda info: info)
