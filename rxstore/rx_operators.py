"""
搭配 action 流使用的 reactivex 運算子。
"""
import inspect
from typing import Any, Callable

from reactivex import Observable, operators as ops


def _matcher(action_type: Any) -> Callable[[Any], bool]:
    if inspect.isclass(action_type):
        return lambda action: isinstance(action, action_type)
    if callable(action_type) and hasattr(action_type, "type"):
        type_key = action_type.type
    else:
        type_key = str(action_type)
    return lambda action: getattr(action, "type", None) == type_key


def of_type(*action_types: Any) -> Callable[[Observable], Observable]:
    """
    過濾 action 流，只保留指定類型的 action。

    每個參數可以是 Python 類別 (以 isinstance 判斷)、
    create_action 產生的 Action 生成器，或 Action.type 字串。

    範例:
        >>> action_stream.pipe(
        ...     of_type(load_count_request),
        ...     ops.map(lambda _: load_count_success(42)),
        ... )
    """
    matchers = [_matcher(t) for t in action_types]
    return ops.filter(lambda action: any(match(action) for match in matchers))
