"""
Tests for the watch orchestrator.
"""

import logging
import threading
import pytest
from pathlib import Path
from unittest.mock import Mock

from watchdog.events import FileCreatedEvent, FileModifiedEvent, FileMovedEvent

from models import BuildStep, SubscriptionState, WatchCategory, WatchSubscription
from services.watcher import SubscriptionEventHandler, WatchOrchestrator


class TestWatchOrchestrator:
    """Test cases for WatchOrchestrator."""

    @pytest.fixture
    def orchestrator(self):
        orchestrator = WatchOrchestrator(observer_factory=Mock)
        yield orchestrator
        orchestrator.stop()

    def _subscription(self, tmp_path, category=WatchCategory.SCRIPTS, handler=None, also_trigger=None):
        return WatchSubscription(
            category=category,
            directory=tmp_path,
            patterns=["*.js"],
            handler=handler or Mock(),
            also_trigger=also_trigger or [],
        )

    def test_dispatch_calls_handler_with_path(self, orchestrator, tmp_path):
        """Test the handler receives the changed file path."""
        handler = Mock()
        orchestrator.subscribe(self._subscription(tmp_path, handler=handler))

        assert orchestrator.dispatch(WatchCategory.SCRIPTS, tmp_path / "app.js") is True
        handler.assert_called_once_with(tmp_path / "app.js")

    def test_also_trigger_runs_after_success(self, orchestrator, tmp_path):
        """Test declared also-trigger steps run after the handler."""
        calls = []
        orchestrator.steps[BuildStep.STYLESHEETS] = lambda: calls.append("css")
        orchestrator.subscribe(self._subscription(
            tmp_path, handler=lambda p: calls.append("copy"), also_trigger=[BuildStep.STYLESHEETS]
        ))

        orchestrator.dispatch(WatchCategory.SCRIPTS, tmp_path / "app.js")

        assert calls == ["copy", "css"]

    def test_also_trigger_skipped_on_failure(self, orchestrator, tmp_path, caplog):
        """Test a failing handler is logged and its also-trigger steps do not run."""
        css = Mock()
        orchestrator.steps[BuildStep.STYLESHEETS] = css
        orchestrator.subscribe(self._subscription(
            tmp_path, handler=Mock(side_effect=OSError("boom")), also_trigger=[BuildStep.STYLESHEETS]
        ))

        with caplog.at_level(logging.ERROR):
            assert orchestrator.dispatch(WatchCategory.SCRIPTS, tmp_path / "app.js") is False

        css.assert_not_called()
        assert any("app.js" in r.getMessage() and "boom" in r.getMessage() for r in caplog.records)

    def test_also_trigger_failure_logged(self, orchestrator, tmp_path, caplog):
        """Test a failing also-trigger step is logged without raising."""
        orchestrator.steps[BuildStep.STYLESHEETS] = Mock(side_effect=RuntimeError("sass broke"))
        orchestrator.subscribe(self._subscription(tmp_path, also_trigger=[BuildStep.STYLESHEETS]))

        assert orchestrator.dispatch(WatchCategory.SCRIPTS, tmp_path / "app.js") is False
        assert any("sass broke" in r.getMessage() for r in caplog.records)

    def test_state_transitions(self, orchestrator, tmp_path):
        """Test the category is BUILDING while its handler runs."""
        seen = []

        def handler(path):
            seen.append(orchestrator.state(WatchCategory.SCRIPTS))

        orchestrator.subscribe(self._subscription(tmp_path, handler=handler))

        assert orchestrator.state(WatchCategory.SCRIPTS) is SubscriptionState.IDLE
        orchestrator.dispatch(WatchCategory.SCRIPTS, tmp_path / "app.js")
        assert seen == [SubscriptionState.BUILDING]
        assert orchestrator.state(WatchCategory.SCRIPTS) is SubscriptionState.IDLE

    def test_submit_runs_on_worker(self, orchestrator, tmp_path):
        """Test submitted changes run on the category's worker thread."""
        threads = []
        orchestrator.subscribe(self._subscription(
            tmp_path, handler=lambda p: threads.append(threading.current_thread().name)
        ))

        future = orchestrator.submit(WatchCategory.SCRIPTS, tmp_path / "app.js")

        assert future.result(timeout=5) is True
        assert threads[0].startswith("watch-scripts")

    def test_blocked_category_does_not_block_others(self, orchestrator, tmp_path):
        """Test a hung handler in one category leaves other categories running."""
        release = threading.Event()
        orchestrator.subscribe(self._subscription(
            tmp_path, category=WatchCategory.SCRIPTS, handler=lambda p: release.wait(5)
        ))
        pages = Mock()
        orchestrator.subscribe(self._subscription(tmp_path, category=WatchCategory.PAGES, handler=pages))

        blocked = orchestrator.submit(WatchCategory.SCRIPTS, tmp_path / "app.js")
        other = orchestrator.submit(WatchCategory.PAGES, tmp_path / "index.html")

        assert other.result(timeout=5) is True
        assert not blocked.done()
        release.set()
        assert blocked.result(timeout=5) is True

    def test_submit_without_subscription(self, orchestrator, tmp_path):
        """Test changes for unknown categories are ignored."""
        assert orchestrator.submit(WatchCategory.PARTIALS, tmp_path / "nav.html") is None

    def test_submit_after_worker_shutdown(self, orchestrator, tmp_path, caplog):
        """Test a change racing with shutdown is dropped instead of raising."""
        handler = Mock()
        orchestrator.subscribe(self._subscription(tmp_path, handler=handler))
        orchestrator._executors[WatchCategory.SCRIPTS].shutdown()

        with caplog.at_level(logging.DEBUG, logger="services.watcher"):
            assert orchestrator.submit(WatchCategory.SCRIPTS, tmp_path / "app.js") is None

        handler.assert_not_called()
        assert any("app.js" in r.getMessage() for r in caplog.records)

    def test_start_schedules_existing_directories(self, orchestrator, tmp_path):
        """Test start schedules every subscription whose directory exists."""
        orchestrator.subscribe(self._subscription(tmp_path, category=WatchCategory.SCRIPTS))
        orchestrator.subscribe(WatchSubscription(
            category=WatchCategory.PARTIALS, directory=tmp_path / "missing", handler=Mock()
        ))

        orchestrator.start()

        observer = orchestrator.observer
        assert observer.schedule.call_count == 1
        args, kwargs = observer.schedule.call_args
        assert isinstance(args[0], SubscriptionEventHandler)
        assert args[1] == str(tmp_path)
        assert kwargs == {"recursive": True}
        observer.start.assert_called_once()

    def test_stop_unsubscribes_everything(self, tmp_path):
        """Test stop unschedules watches, stops the observer and clears subscriptions."""
        orchestrator = WatchOrchestrator(observer_factory=Mock)
        orchestrator.subscribe(self._subscription(tmp_path))
        orchestrator.start()
        observer = orchestrator.observer

        orchestrator.stop()

        observer.unschedule.assert_called_once()
        observer.stop.assert_called_once()
        observer.join.assert_called_once()
        assert orchestrator.subscriptions == []
        assert orchestrator.running is False
        assert orchestrator.submit(WatchCategory.SCRIPTS, tmp_path / "app.js") is None

    def test_subscribe_replaces_category(self, orchestrator, tmp_path):
        """Test subscribing a category twice keeps only the latest subscription."""
        first, second = Mock(), Mock()
        orchestrator.subscribe(self._subscription(tmp_path, handler=first))
        orchestrator.subscribe(self._subscription(tmp_path, handler=second))

        orchestrator.dispatch(WatchCategory.SCRIPTS, tmp_path / "app.js")

        assert len(orchestrator.subscriptions) == 1
        first.assert_not_called()
        second.assert_called_once()


class TestSubscriptionEventHandler:
    """Test cases for the watchdog event bridge."""

    @pytest.fixture
    def handler(self, tmp_path):
        orchestrator = Mock()
        subscription = WatchSubscription(
            category=WatchCategory.SCRIPTS, directory=tmp_path, patterns=["*.js"], handler=Mock()
        )
        return SubscriptionEventHandler(orchestrator, subscription), orchestrator

    def test_modified_matching_file(self, handler, tmp_path):
        """Test a modified matching file is submitted."""
        event_handler, orchestrator = handler
        event_handler.dispatch(FileModifiedEvent(str(tmp_path / "app.js")))
        orchestrator.submit.assert_called_once_with(WatchCategory.SCRIPTS, tmp_path / "app.js")

    def test_created_matching_file(self, handler, tmp_path):
        """Test a created matching file is submitted."""
        event_handler, orchestrator = handler
        event_handler.dispatch(FileCreatedEvent(str(tmp_path / "new.js")))
        orchestrator.submit.assert_called_once_with(WatchCategory.SCRIPTS, tmp_path / "new.js")

    def test_moved_uses_destination(self, handler, tmp_path):
        """Test an atomic save (move into place) submits the destination path."""
        event_handler, orchestrator = handler
        event_handler.dispatch(FileMovedEvent(str(tmp_path / "app.js.tmp"), str(tmp_path / "app.js")))
        orchestrator.submit.assert_called_once_with(WatchCategory.SCRIPTS, tmp_path / "app.js")

    def test_non_matching_file_ignored(self, handler, tmp_path):
        """Test files outside the patterns are ignored."""
        event_handler, orchestrator = handler
        event_handler.dispatch(FileModifiedEvent(str(tmp_path / "notes.txt")))
        orchestrator.submit.assert_not_called()

    def test_moved_to_non_matching_destination_ignored(self, handler, tmp_path):
        """Test a move to a name outside the patterns, like an editor backup, is not submitted."""
        event_handler, orchestrator = handler
        event_handler.dispatch(FileMovedEvent(str(tmp_path / "app.js"), str(tmp_path / "app.js~")))
        orchestrator.submit.assert_not_called()

    def test_pattern_match_is_case_sensitive(self, handler, tmp_path):
        """Test upper-case extensions are ignored, as the page builder ignores them."""
        event_handler, orchestrator = handler
        event_handler.dispatch(FileModifiedEvent(str(tmp_path / "App.JS")))
        orchestrator.submit.assert_not_called()
