"""Thread-safe, lazily-initialized singleton.

Used for process-wide handles (such as the identity provider client) that
are expensive to build and must be built exactly once, even when several
threads or event loops race on first access.
"""

import logging
import threading
from abc import ABC
from typing import ClassVar, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="ThreadSafeSingleton")


class ThreadSafeSingleton(ABC):
    """Abstract base class for per-class singletons.

    Each subclass gets its own instance slot and its own lock, so two
    different singletons never contend with each other. Construction and
    ``_initialize()`` both run under the lock with double-checked locking.

    If ``_initialize()`` raises, no instance is published and the next
    ``get_instance()`` call tries again.

    Usage:
        class ProviderHandle(ThreadSafeSingleton):
            def _initialize(self):
                self.client = build_client()

        client = ProviderHandle.get_instance().client
    """

    _instance: ClassVar[Optional["ThreadSafeSingleton"]] = None
    _lock: ClassVar[threading.Lock]

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        cls._instance = None
        cls._lock = threading.Lock()

    def _initialize(self) -> None:
        """One-time setup. Override in subclasses."""

    def _cleanup(self) -> None:
        """Release resources on reset. Override in subclasses."""

    @classmethod
    def get_instance(cls: type[T]) -> T:
        """Return the singleton, building it on first use."""
        instance = cls._instance
        if instance is not None:
            return instance  # type: ignore[return-value]

        with cls._lock:
            if cls._instance is None:
                candidate = object.__new__(cls)
                candidate._initialize()
                cls._instance = candidate
                logger.debug(f"{cls.__name__} initialized")
        return cls._instance  # type: ignore[return-value]

    @classmethod
    def peek_instance(cls: type[T]) -> Optional[T]:
        """Return the singleton if it has been built, without building it."""
        return cls._instance  # type: ignore[return-value]

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton (tests and shutdown only)."""
        with cls._lock:
            if cls._instance is not None:
                try:
                    cls._instance._cleanup()
                except Exception as e:
                    logger.warning(f"{cls.__name__} cleanup failed: {e}")
                cls._instance = None
