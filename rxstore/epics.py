"""
RxStore 的 Epic 定義模組。

Epic 是把 action 流轉換成 action 流的函數：(actions, store) -> actions。
Epic 輸出的每個 action 都會由 EpicMiddleware 重新 dispatch 回 Store，
因此 Epic 絕不能原封不動地返回輸入的 action 流，否則會形成無限迴圈。
"""
import abc
import functools
import inspect
from typing import Any, Generic, Iterable, List, Tuple, Type, TypeVar, Union

import reactivex
from reactivex import Observable, operators as ops

from .errors import EpicError
from .types import Epic, EpicStoreProtocol

S = TypeVar("S")


def epic_name(epic: Any) -> str:
    return getattr(epic, "__qualname__", None) or type(epic).__name__


def run_epic(epic: Epic, actions: Observable, store: EpicStoreProtocol) -> Observable:
    """
    執行一個 Epic 並檢查它的輸出。

    Raises:
        EpicError: Epic 直接返回了輸入的 action 流。
    """
    output = epic(actions, store)
    if output is actions:
        raise EpicError(
            "Epic returned its input action stream; every emitted action would be dispatched again",
            epic_name=epic_name(epic),
        )
    return output


class EpicClass(abc.ABC, Generic[S]):
    """
    以類別實作的 Epic。

    一般情況下函數形式的 Epic 較為簡單；需要保存配置或依賴時可以繼承此類別。

    範例:
        ```python
        class SearchEpic(EpicClass):
            def __init__(self, api):
                self.api = api

            def __call__(self, actions, store):
                return actions.pipe(
                    of_type(PerformSearch),
                    ops.flat_map(lambda a: from_future(self.api.search(a.term))),
                    ops.map(SearchResults),
                )
        ```
    """

    @abc.abstractmethod
    def __call__(self, actions: Observable, store: EpicStoreProtocol[S]) -> Observable:
        ...


class WhereTypeEpic(EpicClass[S]):
    """
    讓只處理特定類型 action 的 Epic 能與處理所有 action 的 Epic 組合。

    輸入流先以 isinstance 過濾成 action_type 的實例再交給被包裝的 Epic，
    被包裝 Epic 的輸出則原樣傳出。

    範例:
        ```python
        def search_epic(actions, store):
            # actions 只會包含 PerformSearch
            return actions.pipe(ops.map(lambda a: SearchResults(a.term)))

        epic = combine_epics([
            WhereTypeEpic(PerformSearch, search_epic),
            WhereTypeEpic(ChatAction, chat_epic),
        ])
        ```
    """

    def __init__(self, action_type: Union[Type[Any], Tuple[Type[Any], ...]], epic: Epic):
        self.action_type = action_type
        self.epic = epic

    def __call__(self, actions: Observable, store: EpicStoreProtocol[S]) -> Observable:
        narrowed = actions.pipe(ops.filter(lambda action: isinstance(action, self.action_type)))
        return self.epic(narrowed, store)

    def __repr__(self) -> str:
        return f"WhereTypeEpic({self.action_type!r}, {epic_name(self.epic)})"


def combine_epics(epics: Iterable[Epic]) -> Epic:
    """
    將多個 Epic 合併為一個。

    每個 Epic 都以同一個 action 流與 store 執行，輸出流以 merge 合併：
    任一 Epic 產生的 action 會立即出現在合併流中，不同 Epic 之間沒有順序保證。
    任一 Epic 的輸出流發生錯誤時，合併流會隨之終止，其他 Epic 的輸出也不再傳遞。

    Args:
        epics: 要合併的 Epic 列表

    Returns:
        合併後的 Epic
    """
    epic_list = list(epics)

    def combined(actions: Observable, store: EpicStoreProtocol) -> Observable:
        return reactivex.merge(*[run_epic(epic, actions, store) for epic in epic_list])

    combined.__qualname__ = f"combine_epics[{', '.join(epic_name(e) for e in epic_list)}]"
    combined.epics = tuple(epic_list)  # type: ignore[attr-defined]
    return combined


def create_epic(epic_fn=None, *, dispatch: bool = True):
    """
    標記函數或方法為 Epic，供 collect_epics 收集。

    用法：
      @create_epic
      def foo(self, actions, store): ...
    或
      @create_epic(dispatch=False)
      def bar(self, actions, store): ...

    :param epic_fn: 被裝飾的函數，默認為 None。
    :param dispatch: 是否 dispatch Epic 輸出的 action；為 False 時輸出被忽略，
        只保留副作用。
    :return: 包裝後的函數或裝飾器。
    """
    if epic_fn is None:
        def decorator(fn):
            return create_epic(fn, dispatch=dispatch)
        return decorator

    @functools.wraps(epic_fn)
    def wrapper(*args, **kwargs):
        source = epic_fn(*args, **kwargs)
        if dispatch:
            return source
        return source.pipe(ops.ignore_elements())

    wrapper.is_epic = True
    wrapper.dispatch = dispatch
    return wrapper


def collect_epics(*items: Any) -> List[Epic]:
    """
    收集所有以 create_epic 標記的 Epic。

    :param items: 一個或多個項目，可以是被標記的函數、類別 (會被無參數實例化)、
        實例，或包含上述項目的列表。
    :return: 可直接傳給 combine_epics 的 Epic 列表。
    """
    epics: List[Epic] = []
    for item in items:
        if isinstance(item, (list, tuple)):
            epics.extend(collect_epics(*item))
        elif getattr(item, "is_epic", False):
            epics.append(item)
        else:
            instance = item() if inspect.isclass(item) else item
            for _, member in inspect.getmembers(instance):
                if getattr(member, "is_epic", False):
                    epics.append(member)
    return epics
