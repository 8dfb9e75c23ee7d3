"""
Watch orchestrator: maps source changes to targeted rebuilds.
Each watch subscription has its own worker, so a slow rebuild in one
category never holds up the others.
"""

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from watchdog.events import FileSystemEvent, PatternMatchingEventHandler
from watchdog.observers import Observer
from watchdog.utils.patterns import match_any_paths

from models import BuildStep, SubscriptionState, WatchCategory, WatchSubscription

logger = logging.getLogger(__name__)


class SubscriptionEventHandler(PatternMatchingEventHandler):
    """Forwards matching file changes to the orchestrator."""

    def __init__(self, orchestrator: "WatchOrchestrator", subscription: WatchSubscription):
        super().__init__(patterns=subscription.patterns, ignore_directories=True, case_sensitive=True)
        self.orchestrator = orchestrator
        self.category = subscription.category

    def handle(self, path):
        self.orchestrator.submit(self.category, Path(os.fsdecode(path)))

    def on_modified(self, event: FileSystemEvent):
        self.handle(event.src_path)

    def on_created(self, event: FileSystemEvent):
        self.handle(event.src_path)

    def on_moved(self, event: FileSystemEvent):
        # Delivered when either end matches; only a matching destination is a change.
        dest = os.fsdecode(event.dest_path)
        if not match_any_paths([dest], included_patterns=self.patterns, case_sensitive=self.case_sensitive):
            logger.debug(f"Ignoring move of {os.fsdecode(event.src_path)} to {dest}")
            return
        self.handle(dest)


class WatchOrchestrator:
    """Owns the watch subscriptions and runs their handlers."""

    def __init__(self, steps: Optional[Dict[BuildStep, Callable[[], Any]]] = None,
                 observer_factory: Callable[[], Any] = Observer):
        self.steps = dict(steps or {})
        self.observer_factory = observer_factory
        self.observer = None
        self._subscriptions: Dict[WatchCategory, WatchSubscription] = {}
        self._executors: Dict[WatchCategory, ThreadPoolExecutor] = {}
        self._states: Dict[WatchCategory, SubscriptionState] = {}
        self._watches: Dict[WatchCategory, Any] = {}

    @property
    def subscriptions(self) -> List[WatchSubscription]:
        return list(self._subscriptions.values())

    @property
    def running(self) -> bool:
        return self.observer is not None

    def state(self, category: WatchCategory) -> SubscriptionState:
        return self._states.get(category, SubscriptionState.IDLE)

    def subscribe(self, subscription: WatchSubscription) -> None:
        """Register a subscription, replacing any previous one for its category."""
        if subscription.category in self._subscriptions:
            self.unsubscribe(subscription.category)

        self._subscriptions[subscription.category] = subscription
        self._states[subscription.category] = SubscriptionState.IDLE
        self._executors[subscription.category] = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"watch-{subscription.category.value}"
        )
        if self.running:
            self._schedule(subscription)

    def unsubscribe(self, category: WatchCategory, wait: bool = True) -> None:
        self._subscriptions.pop(category, None)
        watch = self._watches.pop(category, None)
        if watch is not None and self.observer is not None:
            self.observer.unschedule(watch)
        executor = self._executors.pop(category, None)
        if executor is not None:
            executor.shutdown(wait=wait)
        self._states.pop(category, None)

    def _schedule(self, subscription: WatchSubscription) -> None:
        if not subscription.directory.is_dir():
            logger.warning(f"Not watching {subscription.category.value}: {subscription.directory} does not exist")
            return
        handler = SubscriptionEventHandler(self, subscription)
        self._watches[subscription.category] = self.observer.schedule(
            handler, str(subscription.directory), recursive=subscription.recursive
        )
        logger.info(f"⚡ Watching {subscription.directory} for {subscription.category.value} changes...")

    def start(self) -> None:
        """Start observing every registered subscription."""
        if self.running:
            return
        self.observer = self.observer_factory()
        for subscription in self._subscriptions.values():
            self._schedule(subscription)
        self.observer.start()

    def stop(self, wait: bool = True) -> None:
        """Unsubscribe every watcher and stop observing."""
        for category in list(self._subscriptions):
            self.unsubscribe(category, wait=wait)
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    def submit(self, category: WatchCategory, path: Path) -> Optional[Future]:
        """Queue a change on the category's worker."""
        executor = self._executors.get(category)
        if executor is None:
            logger.debug(f"Ignoring change to {path}: no {category.value} subscription")
            return None
        try:
            return executor.submit(self.dispatch, category, path)
        except RuntimeError as e:
            # Executor shut down between the lookup and the submit.
            logger.debug(f"Ignoring change to {path}: {e}")
            return None

    def dispatch(self, category: WatchCategory, path: Path) -> bool:
        """
        Run a category's handler for a changed file, then its also-trigger steps.

        Failures are logged and never propagate, so one broken rebuild does
        not stop the watchers.

        Returns:
            True if the handler and every also-trigger step succeeded
        """
        subscription = self._subscriptions.get(category)
        if subscription is None:
            return False

        self._states[category] = SubscriptionState.BUILDING
        try:
            try:
                subscription.handler(path)
            except Exception as e:
                logger.error(f"✗ {category.value} rebuild failed for {path}: {e}")
                return False

            ok = True
            for step in subscription.also_trigger:
                action = self.steps.get(step)
                if action is None:
                    logger.warning(f"No build step registered for {step.value}")
                    continue
                try:
                    action()
                except Exception as e:
                    logger.error(f"✗ {step.value} build triggered by {path} failed: {e}")
                    ok = False
            return ok
        finally:
            if category in self._states:
                self._states[category] = SubscriptionState.IDLE
