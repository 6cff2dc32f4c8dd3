"""
延遲投遞的調度策略。

EpicMiddleware 的延遲模式與 Store 的非同步通知都需要把工作
排到「下一輪」執行。這裡把調度器的選擇集中起來，
讓中介軟體本身不依賴特定事件迴圈。
"""
import asyncio
import enum
from typing import Any, Callable, Optional

from reactivex.abc import DisposableBase, SchedulerBase
from reactivex.scheduler import CurrentThreadScheduler
from reactivex.scheduler.eventloop import AsyncIOScheduler


class DeliveryMode(str, enum.Enum):
    """
    Action 投遞給 Epic 的方式。

    Props:
        IMMEDIATE: 在 dispatch 的同一個呼叫堆疊內同步投遞。
        DEFERRED: 排程到下一輪事件迴圈投遞 (零延遲)。
    """

    IMMEDIATE = "immediate"
    DEFERRED = "deferred"


class NextTurnScheduler:
    """
    解析用於「下一輪」工作的 reactivex 調度器。

    明確指定的調度器優先；否則在有執行中的 asyncio 事件迴圈時，
    使用綁定該迴圈的 AsyncIOScheduler (call_soon)；
    沒有事件迴圈時退回 CurrentThreadScheduler 的 trampoline：
    在 trampoline 內排入的工作會在目前工作完成後執行，
    在最外層排入的工作則立即執行。
    """

    def __init__(self, scheduler: Optional[SchedulerBase] = None):
        self._explicit = scheduler
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_scheduler: Optional[AsyncIOScheduler] = None

    def resolve(self) -> SchedulerBase:
        if self._explicit is not None:
            return self._explicit

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return CurrentThreadScheduler.singleton()

        if loop is not self._loop:
            self._loop = loop
            self._loop_scheduler = AsyncIOScheduler(loop)
        return self._loop_scheduler

    def schedule(self, fn: Callable[[], Any]) -> DisposableBase:
        """
        把無參數函數排到下一輪執行。

        Args:
            fn: 要執行的函數

        Returns:
            可用於取消排程的 disposable
        """
        def action(_scheduler: SchedulerBase, _state: Any = None) -> None:
            fn()

        return self.resolve().schedule(action)
