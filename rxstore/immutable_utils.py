"""
不可變資料的轉換工具。

Action 的字典負載與需要以 == 比較的狀態 (例如 distinct Store)
都可以先轉為 immutables.Map、tuple 與 frozenset 的巢狀結構，
之後可以直接比較與雜湊。
"""
from collections.abc import Mapping
from typing import Any

from immutables import Map
from pydantic import BaseModel


def to_immutable(obj: Any) -> Any:
    """
    遞迴地把容器轉為不可變形式。

    Pydantic 模型與字典轉為 Map，list 與 tuple 轉為 tuple，
    set 轉為 frozenset，其他值原樣返回。
    """
    if isinstance(obj, BaseModel):
        obj = obj.model_dump()
    if isinstance(obj, (Mapping, Map)):
        return Map((key, to_immutable(value)) for key, value in obj.items())
    if isinstance(obj, (list, tuple)):
        return tuple(map(to_immutable, obj))
    if isinstance(obj, (set, frozenset)):
        return frozenset(map(to_immutable, obj))
    return obj


def to_dict(obj: Any) -> Any:
    """to_immutable 的反向轉換：Map 轉回 dict，tuple 轉回 list，frozenset 轉回 set。"""
    if isinstance(obj, Map):
        return {key: to_dict(value) for key, value in obj.items()}
    if isinstance(obj, tuple):
        return list(map(to_dict, obj))
    if isinstance(obj, frozenset):
        return set(map(to_dict, obj))
    return obj
