from typing import Generic, TypeVar

from reactivex import Observable

from .types import StoreProtocol

S = TypeVar("S")


class EpicStore(Generic[S]):
    """
    傳給 Epic 的唯讀 Store 視圖。

    只暴露 state 與 on_change，不提供 dispatch：
    Epic 的輸出流會由 EpicMiddleware 負責 dispatch。
    """

    __slots__ = ("_store",)

    def __init__(self, store: StoreProtocol[S]):
        self._store = store

    @property
    def state(self) -> S:
        """Store 目前的狀態。"""
        return self._store.state

    @property
    def on_change(self) -> Observable:
        return self._store.on_change

    def __repr__(self) -> str:
        return f"EpicStore(state={self.state!r})"
