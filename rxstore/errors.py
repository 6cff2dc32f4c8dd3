"""
RxStore 錯誤處理模組。

定義結構化的異常層級以及集中式錯誤處理器。
Reducer 與中介軟體拋出的異常不會被包裝，會原樣從 dispatch 傳出；
這裡的異常類型用於 Store 本身的操作錯誤、配置錯誤與 Epic 輸出錯誤。
"""
import logging
import traceback
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class StoreXError(Exception):
    """所有 RxStore 異常的基礎類。"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.traceback = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """
        將異常轉換為可序列化的字典。

        Returns:
            包含錯誤類型、訊息與細節的字典。
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": dict(self.details),
        }

    def __str__(self) -> str:
        if not self.details:
            return self.message
        details = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"{self.message} ({details})"


class StoreError(StoreXError):
    """與 Store 操作相關的錯誤。"""

    def __init__(self, message: str, operation: str, **kwargs: Any):
        super().__init__(message, {"operation": operation, **kwargs})
        self.operation = operation


class StoreClosedError(StoreError):
    """Store 已經 teardown 之後仍嘗試 dispatch。"""

    def __init__(self, operation: str = "dispatch", **kwargs: Any):
        super().__init__("Store has been torn down", operation, **kwargs)


class MiddlewareError(StoreXError):
    """與中介軟體相關的錯誤。"""

    def __init__(self, message: str, middleware_name: str, action_type: Optional[str] = None, **kwargs: Any):
        details = {"middleware": middleware_name, **kwargs}
        if action_type is not None:
            details["action_type"] = action_type
        super().__init__(message, details)
        self.middleware_name = middleware_name
        self.action_type = action_type


class EpicError(StoreXError):
    """與 Epic 相關的錯誤。"""

    def __init__(self, message: str, epic_name: str, action_type: Optional[str] = None, **kwargs: Any):
        details = {"epic": epic_name, **kwargs}
        if action_type is not None:
            details["action_type"] = action_type
        super().__init__(message, details)
        self.epic_name = epic_name
        self.action_type = action_type


class ConfigurationError(StoreXError):
    """配置相關的錯誤。"""

    def __init__(self, message: str, component: str, config_key: Optional[str] = None, **kwargs: Any):
        details = {"component": component, **kwargs}
        if config_key is not None:
            details["config_key"] = config_key
        super().__init__(message, details)
        self.component = component
        self.config_key = config_key


class ErrorHandler:
    """
    集中式錯誤處理器，用於日誌記錄和錯誤報告。

    處理器只負責記錄與轉發，不會吞掉錯誤：
    呼叫端在 handle 之後是否繼續拋出由呼叫端決定。
    """

    def __init__(self, log_to_console: bool = True, log_to_file: bool = False, log_file: Optional[str] = None):
        self.log_to_console = log_to_console
        self.log_to_file = log_to_file
        self.log_file = log_file
        self.handlers: List[Callable[[StoreXError], None]] = []
        self._file_handler: Optional[logging.Handler] = None

        if log_to_file:
            if not log_file:
                raise ConfigurationError(
                    "log_file is required when log_to_file is enabled",
                    component="ErrorHandler",
                    config_key="log_file",
                )
            self._file_handler = logging.FileHandler(log_file, encoding="utf-8")
            self._file_handler.setLevel(logging.ERROR)
            logger.addHandler(self._file_handler)

    def register_handler(self, handler: Callable[[StoreXError], None]) -> None:
        """
        註冊一個額外的錯誤處理回呼。

        Args:
            handler: 接收 StoreXError 的函數
        """
        self.handlers.append(handler)

    def unregister_handler(self, handler: Callable[[StoreXError], None]) -> None:
        if handler in self.handlers:
            self.handlers.remove(handler)

    def handle(self, error: Union[StoreXError, BaseException]) -> StoreXError:
        """
        記錄錯誤並通知所有已註冊的處理回呼。

        非 StoreXError 的異常會先被包裝，原始異常保留在 __cause__。

        Args:
            error: 要處理的異常

        Returns:
            處理後的 StoreXError
        """
        if not isinstance(error, StoreXError):
            wrapped = StoreXError(str(error), {"original_type": type(error).__name__})
            wrapped.__cause__ = error
            error = wrapped

        if self.log_to_console or self.log_to_file:
            cause = error.__cause__ or error
            logger.error(
                "%s: %s",
                error.__class__.__name__,
                error,
                exc_info=(type(cause), cause, cause.__traceback__),
            )

        for handler in list(self.handlers):
            handler(error)
        return error


# 單例錯誤處理器
global_error_handler = ErrorHandler()


__all__ = [
    "StoreXError", "StoreError", "StoreClosedError", "MiddlewareError",
    "EpicError", "ConfigurationError", "ErrorHandler", "global_error_handler",
]
