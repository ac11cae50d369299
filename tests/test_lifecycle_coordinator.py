"""Tests for lifecycle coordinator."""

import logging
import signal
import threading
import time

from silverware.context import Context
from silverware.lifecycle import LifecycleCoordinator, LifecycleEvent


def start_waiting_thread(wait: threading.Event, name: str = "provider") -> threading.Thread:
    thread = threading.Thread(target=wait.wait, daemon=True, name=name)
    thread.start()
    return thread


class TestShutdown:
    """Tests for the shutdown phase."""

    def test_interrupts_context_and_joins_provider_threads(self):
        # Given a provider thread that runs until the context is interrupted
        context = Context()
        coordinator = LifecycleCoordinator(context, graceful_shutdown_timeout=5)
        thread = threading.Thread(target=context.wait_interrupted, daemon=True)
        thread.start()
        coordinator.register_provider_thread(thread)

        # When shutting down
        coordinator.shutdown()

        # Then the context is interrupted and the thread has ended
        assert context.is_interrupted()
        assert not thread.is_alive()
        assert coordinator.is_shutting_down()

    def test_event_sequence_around_interrupt(self):
        context = Context()
        coordinator = LifecycleCoordinator(context, graceful_shutdown_timeout=5)
        events = []

        coordinator.register_lifecycle_notification(
            lambda event: events.append((event, context.is_interrupted()))
        )
        coordinator._handle_signal(signal.SIGTERM, None)

        assert events == [
            (LifecycleEvent.SHUTDOWN, False),
            (LifecycleEvent.AFTER_SHUTDOWN, True),
        ]

    def test_abandons_threads_after_timeout(self, caplog):
        # Given a thread that ignores the interrupt
        release = threading.Event()
        coordinator = LifecycleCoordinator(Context(), graceful_shutdown_timeout=0.2)
        coordinator.register_provider_thread(start_waiting_thread(release, "stuck"))
        events: list[LifecycleEvent] = []
        coordinator.register_lifecycle_notification(events.append)

        try:
            with caplog.at_level(logging.WARNING, logger="silverware.lifecycle"):
                start = time.perf_counter()
                coordinator.shutdown()
                elapsed = time.perf_counter() - start
        finally:
            release.set()

        # Then shutdown still completes within the timeout and names the thread
        assert elapsed < 1.0
        assert events[-1] == LifecycleEvent.AFTER_SHUTDOWN
        assert any("stuck" in record.getMessage() for record in caplog.records)

    def test_timeout_shared_across_threads(self):
        release = threading.Event()
        coordinator = LifecycleCoordinator(Context(), graceful_shutdown_timeout=0.3)
        for index in range(3):
            coordinator.register_provider_thread(start_waiting_thread(release, f"stuck-{index}"))

        try:
            start = time.perf_counter()
            coordinator.shutdown()
            elapsed = time.perf_counter() - start
        finally:
            release.set()

        assert elapsed < 0.8

    def test_shutdown_is_idempotent(self):
        coordinator = LifecycleCoordinator(Context(), graceful_shutdown_timeout=5)
        events: list[LifecycleEvent] = []
        coordinator.register_lifecycle_notification(events.append)

        coordinator.shutdown()
        coordinator.shutdown()

        assert events == [LifecycleEvent.SHUTDOWN, LifecycleEvent.AFTER_SHUTDOWN]

    def test_notification_exception_isolated(self):
        context = Context()
        coordinator = LifecycleCoordinator(context, graceful_shutdown_timeout=5)
        good_events: list[LifecycleEvent] = []

        def bad_callback(event: LifecycleEvent):
            raise Exception("Test error")

        coordinator.register_lifecycle_notification(bad_callback)
        coordinator.register_lifecycle_notification(good_events.append)

        coordinator.shutdown()

        assert good_events == [LifecycleEvent.SHUTDOWN, LifecycleEvent.AFTER_SHUTDOWN]
        assert context.is_interrupted()


class TestStartup:
    """Tests for startup notification."""

    def test_fire_startup_idempotent(self):
        coordinator = LifecycleCoordinator(Context(), graceful_shutdown_timeout=5)
        events: list[LifecycleEvent] = []
        coordinator.register_lifecycle_notification(events.append)

        coordinator.fire_startup()
        coordinator.fire_startup()

        assert events == [LifecycleEvent.STARTUP]
        assert not coordinator.is_shutting_down()
