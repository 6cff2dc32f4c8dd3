"""
RxStore：單向資料流的狀態管理核心。

Store 透過中介軟體鏈分發 action，Epic 以 reactivex 流處理副作用。
"""

from .errors import (
    StoreXError, StoreError, StoreClosedError, MiddlewareError, EpicError,
    ConfigurationError, ErrorHandler, global_error_handler,
)
from .actions import Action, create_action, global_error
from .reducers import create_reducer, on, combine_reducers, TypedReducer
from .middleware import (
    BaseMiddleware, LoggerMiddleware, ThunkMiddleware, ErrorMiddleware,
    PerformanceMonitorMiddleware, TypedMiddleware,
)
from .scheduling import DeliveryMode, NextTurnScheduler
from .store import Store, StoreOptions, create_store
from .epic_store import EpicStore
from .epics import EpicClass, WhereTypeEpic, combine_epics, create_epic, collect_epics
from .epic_middleware import EpicMiddleware, EpicMiddlewareOptions
from .rx_operators import of_type
from .immutable_utils import to_immutable, to_dict

__version__ = "0.3.0"

__all__ = [
    # Errors
    "StoreXError", "StoreError", "StoreClosedError", "MiddlewareError", "EpicError",
    "ConfigurationError", "ErrorHandler", "global_error_handler",

    # Actions
    "Action", "create_action", "global_error",

    # Reducers
    "create_reducer", "on", "combine_reducers", "TypedReducer",

    # Middleware
    "BaseMiddleware", "LoggerMiddleware", "ThunkMiddleware", "ErrorMiddleware",
    "PerformanceMonitorMiddleware", "TypedMiddleware",

    # Scheduling
    "DeliveryMode", "NextTurnScheduler",

    # Store
    "Store", "StoreOptions", "create_store",

    # Epics
    "EpicStore", "EpicClass", "WhereTypeEpic", "combine_epics", "create_epic",
    "collect_epics", "EpicMiddleware", "EpicMiddlewareOptions", "of_type",

    # Immutable Utils
    "to_immutable", "to_dict",
]
