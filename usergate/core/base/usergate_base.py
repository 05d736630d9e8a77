"""UserGate class. Provides unified configuration, logging and context management."""

import inspect
import logging
import time
import traceback
from functools import wraps
from typing import Callable, Optional

from usergate.core.config import CoreConfig, SettingsLike
from usergate.core.logging.logger import get_logger
from usergate.core.utils import ifnone

_LOGGER_PARAM_NAMES = {
    "log_dir",
    "logger_level",
    "stream_level",
    "file_level",
    "file_mode",
    "propagate",
    "max_bytes",
    "backup_count",
    "use_structlog",
    "structlog_json",
    "structlog_bind",
}


class UserGateMeta(type):
    """Metaclass for the UserGate class.

    Classes deriving from UserGate use the same default logger within class methods as they do within instance
    methods::

        from usergate.core import UserGate

        class MyClass(UserGate):
            def instance_method(self):
                self.logger.info(f"Using logger: {self.logger.name}")  # usergate.my_module.MyClass

            @classmethod
            def class_method(cls):
                cls.logger.info(f"Using logger: {cls.logger.name}")  # usergate.my_module.MyClass
    """

    def __init__(cls, name, bases, attr_dict):
        super().__init__(name, bases, attr_dict)
        cls._logger = None
        cls._config = None
        cls._logger_kwargs = None

    @property
    def logger(cls):
        if cls._logger is None:
            cls._logger = get_logger(cls.unique_name, **(cls._logger_kwargs or {}))
        return cls._logger

    @logger.setter
    def logger(cls, new_logger):
        cls._logger = new_logger

    @property
    def unique_name(self) -> str:
        return self.__module__ + "." + self.__name__

    @property
    def config(cls):
        if cls._config is None:
            cls._config = CoreConfig()
        return cls._config

    @config.setter
    def config(cls, new_config):
        cls._config = new_config


class UserGate(metaclass=UserGateMeta):
    """Base class for all usergate core classes.

    The UserGate class adds default context manager and logging methods. All classes that derive from UserGate can be
    used as context managers and will use a unified logging format.
    """

    def __init__(self, suppress: bool = False, *, config_overrides: SettingsLike | None = None, **kwargs):
        """
        Initialize the UserGate object.

        Args:
            suppress: Whether to suppress exceptions in context manager use.
            config_overrides: Additional settings to override the default config.
            **kwargs: Additional keyword arguments. Logger-related kwargs are passed to `get_logger`.
                Valid logger kwargs: log_dir, logger_level, stream_level, file_level, file_mode, propagate,
                max_bytes, backup_count, use_structlog, structlog_json, structlog_bind
        """
        self._config_overrides = config_overrides
        self._instance_config: CoreConfig | None = None
        remaining_kwargs = {k: v for k, v in kwargs.items() if k not in _LOGGER_PARAM_NAMES}
        super().__init__(**remaining_kwargs)

        self.suppress = suppress

        logger_kwargs = {k: v for k, v in kwargs.items() if k in _LOGGER_PARAM_NAMES}
        type(self)._logger_kwargs = logger_kwargs
        self.logger = get_logger(self.unique_name, **logger_kwargs)

    @property
    def config(self) -> CoreConfig:
        """Core config with this instance's overrides, built on first access."""
        if self._instance_config is None:
            self._instance_config = CoreConfig(self._config_overrides)
        return self._instance_config

    @config.setter
    def config(self, new_config: CoreConfig):
        self._instance_config = new_config

    @property
    def unique_name(self) -> str:
        return self.__module__ + "." + type(self).__name__

    @property
    def name(self) -> str:
        return type(self).__name__

    def __enter__(self):
        self.logger.debug(f"Initializing {self.name} as a context manager.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.debug(f"Exiting context manager for {self.name}.")
        if exc_type is not None:
            info = (exc_type, exc_val, exc_tb)
            self.logger.exception("Exception occurred", exc_info=info)
            return self.suppress
        return False

    @classmethod
    def autolog(
        cls,
        log_level=logging.DEBUG,
        prefix_formatter: Optional[Callable] = None,
        suffix_formatter: Optional[Callable] = None,
        exception_formatter: Optional[Callable] = None,
        self: Optional["UserGate"] = None,
        include_duration: bool = True,
        expected_exceptions: tuple[type[BaseException], ...] = (),
    ):
        """Decorator that adds logger.log calls to the decorated method before and after the method is called.

        By default, the autolog decorator will log the method name, arguments and keyword arguments before the method
        is called, and the method name and result after the method completes. This behavior can be modified by passing
        in prefix and suffix formatters.

        The autolog decorator will also catch and log all Exceptions, re-raising any exception after logging it.
        Exceptions listed in `expected_exceptions` are logged at `log_level` without a stack trace.

        Args:
            log_level: The log_level passed to logger.log().
            prefix_formatter: Called as prefix_formatter(function, args, kwargs) before the wrapped method runs.
            suffix_formatter: Called as suffix_formatter(function, result) after the wrapped method returns.
            exception_formatter: Called as exception_formatter(function, error, stack_trace) on failure.
            self: The instance whose logger is used. Only needed when the wrapped callable does not take self as its
                first argument (e.g. an already bound method).
            include_duration: If True, append the duration of the wrapped method to the completion record.
            expected_exceptions: Exception types that are part of normal control flow.

        Example::

            from usergate.core import UserGate

            class Calculator(UserGate):
                @UserGate.autolog()
                def divide(self, a, b):
                    return a / b
        """
        prefix_formatter = ifnone(
            prefix_formatter,
            default=lambda function, args, kwargs: (
                f"Operation {function.__name__} started with args: {args} and kwargs: {kwargs}"
            ),
        )
        suffix_formatter = ifnone(
            suffix_formatter,
            default=lambda function, result: f"Operation {function.__name__} completed with result: {result}",
        )
        exception_formatter = ifnone(
            exception_formatter,
            default=lambda function, e, stack_trace: (
                f"Operation {function.__name__} failed with the following error: {e}\n{stack_trace}"
            ),
        )

        def decorator(function):
            def _split(args):
                if self is None:
                    return args[0].logger, args[1:]
                return self.logger, args

            def _completed(logger, result, started_at):
                message = suffix_formatter(function, result)
                if include_duration:
                    message = f"{message} ({(time.perf_counter() - started_at) * 1000:.2f} ms)"
                logger.log(log_level, message)

            def _failed(logger, e):
                if isinstance(e, expected_exceptions):
                    logger.log(log_level, f"Operation {function.__name__} ended with {type(e).__name__}: {e}")
                else:
                    logger.error(exception_formatter(function, e, traceback.format_exc()))

            if inspect.iscoroutinefunction(function):

                @wraps(function)
                async def async_wrapper(*args, **kwargs):
                    logger, call_args = _split(args)
                    logger.log(log_level, prefix_formatter(function, call_args, kwargs))
                    started_at = time.perf_counter()
                    try:
                        result = await function(*args, **kwargs)
                    except Exception as e:
                        _failed(logger, e)
                        raise
                    _completed(logger, result, started_at)
                    return result

                return async_wrapper

            @wraps(function)
            def wrapper(*args, **kwargs):
                logger, call_args = _split(args)
                logger.log(log_level, prefix_formatter(function, call_args, kwargs))
                started_at = time.perf_counter()
                try:
                    result = function(*args, **kwargs)
                except Exception as e:
                    _failed(logger, e)
                    raise
                _completed(logger, result, started_at)
                return result

            return wrapper

        return decorator
