"""Tests for the thread-safe singleton base."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from chatgate.core.patterns import ThreadSafeSingleton


class TestThreadSafeSingleton:

    def test_concurrent_first_access_builds_once(self):
        calls = []
        start = threading.Barrier(16)

        class SlowHandle(ThreadSafeSingleton):
            def _initialize(self):
                calls.append(1)
                time.sleep(0.05)

        def get():
            start.wait()
            return SlowHandle.get_instance()

        with ThreadPoolExecutor(max_workers=16) as pool:
            instances = list(pool.map(lambda _: get(), range(16)))

        assert len(calls) == 1
        assert all(instance is instances[0] for instance in instances)

    def test_subclasses_are_independent(self):
        class A(ThreadSafeSingleton):
            pass

        class B(ThreadSafeSingleton):
            pass

        assert A.get_instance() is not B.get_instance()
        assert isinstance(A.get_instance(), A)
        assert isinstance(B.get_instance(), B)

    def test_failed_initialize_is_not_published(self):
        attempts = []

        class Flaky(ThreadSafeSingleton):
            def _initialize(self):
                attempts.append(1)
                if len(attempts) == 1:
                    raise RuntimeError("not ready")

        with pytest.raises(RuntimeError):
            Flaky.get_instance()
        assert Flaky.peek_instance() is None

        assert Flaky.get_instance() is not None
        assert len(attempts) == 2

    def test_reset_runs_cleanup(self):
        cleaned = []

        class Handle(ThreadSafeSingleton):
            def _cleanup(self):
                cleaned.append(1)

        first = Handle.get_instance()
        Handle.reset_instance()

        assert cleaned == [1]
        assert Handle.get_instance() is not first

    def test_reset_without_instance(self):
        class Handle(ThreadSafeSingleton):
            pass

        Handle.reset_instance()
        assert Handle.peek_instance() is None
