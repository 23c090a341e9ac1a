"""
Watch orchestration.

Watch bindings map globs to task names. A matching filesystem event triggers
the task's dispatcher, which is either idle or dispatching. A trigger that
arrives while dispatching is coalesced into at most one queued rerun.
Task failures are logged and never stop the watcher.
"""
import logging
import os
import sys
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from invoke.exceptions import Exit
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .pipeline.globs import GlobMatcher

logger = logging.getLogger(__name__)

IDLE = 'idle'
DISPATCHING = 'dispatching'

WATCHED_EVENT_TYPES = {'created', 'modified', 'deleted', 'moved'}


def _start_thread(name: str) -> Callable[[Callable[[], None]], None]:
    def spawn(fn):
        threading.Thread(target=fn, name=name, daemon=True).start()
    return spawn


class WatchBinding:
    """Globs whose changes rerun ``tasks``; ``reload`` requests a full page reload afterwards."""

    def __init__(self, patterns: Iterable[str], tasks: Iterable[str], reload: bool = False,
                 root: Optional[Path] = None):
        self.patterns = list(patterns)
        self.tasks = list(tasks)
        self.reload = reload
        self.matcher = GlobMatcher(self.patterns, root)

    def matches(self, path) -> bool:
        return self.matcher.matches(path)

    def __repr__(self):
        return f"WatchBinding({self.patterns!r} -> {self.tasks!r}, reload={self.reload})"


class TaskDispatcher:
    """Runs one task on behalf of watch bindings, one run at a time."""

    def __init__(self, task_name: str, run_task: Callable[[str], None],
                 on_complete: Optional[Callable[[str, bool], None]] = None,
                 spawn: Optional[Callable[[Callable[[], None]], None]] = None):
        self.task_name = task_name
        self._run_task = run_task
        self._on_complete = on_complete
        self._spawn = spawn or _start_thread(f"watch-{task_name}")
        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._state = IDLE
        self._pending = False
        self._reload_requested = False
        self.runs = 0
        self.failures = 0

    @property
    def state(self) -> str:
        return self._state

    @property
    def pending(self) -> bool:
        return self._pending

    def trigger(self, reload: bool = False) -> bool:
        """Request a run. Returns False when coalesced into an already running dispatch."""
        with self._lock:
            self._reload_requested = self._reload_requested or reload
            if self._state == DISPATCHING:
                self._pending = True
                logger.debug(f"'{self.task_name}' busy, queued one rerun")
                return False
            self._state = DISPATCHING
            self._idle.clear()
        self._spawn(self._drain)
        return True

    def _drain(self):
        while True:
            with self._lock:
                reload, self._reload_requested = self._reload_requested, False

            succeeded = self._run_once()
            if self._on_complete is not None:
                self._on_complete(self.task_name, reload and succeeded)

            with self._lock:
                if self._pending:
                    self._pending = False
                    continue
                self._state = IDLE
                self._idle.set()
                return

    def _run_once(self) -> bool:
        self.runs += 1
        started = time.monotonic()
        print(f"🔁 Running '{self.task_name}'")
        try:
            self._run_task(self.task_name)
        except Exit as e:
            self.failures += 1
            logger.warning(f"Watch-triggered task '{self.task_name}' stopped: {e.message or e.code}")
            print(f"❌ '{self.task_name}' stopped", file=sys.stderr)
            return False
        except Exception as e:
            self.failures += 1
            logger.exception(f"Watch-triggered task '{self.task_name}' failed")
            print(f"❌ '{self.task_name}' failed: {e}", file=sys.stderr)
            return False
        logger.debug(f"'{self.task_name}' finished in {time.monotonic() - started:.2f}s")
        return True

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        return self._idle.wait(timeout)


class _BindingEventHandler(FileSystemEventHandler):
    def __init__(self, watcher: 'Watcher'):
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event):
        if event.is_directory or event.event_type not in WATCHED_EVENT_TYPES:
            return
        paths = [event.src_path]
        dest_path = getattr(event, 'dest_path', None)
        if dest_path:
            paths.append(dest_path)
        triggered = set()
        for path in paths:
            triggered.update(self.watcher.handle_path(os.fsdecode(path), exclude=triggered))


class Watcher:
    """Owns the watch bindings, their dispatchers and the watchdog observer."""

    def __init__(self, bindings: List[WatchBinding], run_task: Callable[[str], None],
                 on_reload: Optional[Callable[[], None]] = None,
                 spawn: Optional[Callable[[Callable[[], None]], None]] = None,
                 observer_factory=Observer):
        self.bindings = [b for b in bindings if b.patterns]
        self.on_reload = on_reload
        self._observer_factory = observer_factory
        self._observer = None
        self.dispatchers: Dict[str, TaskDispatcher] = {}
        for binding in self.bindings:
            for task_name in binding.tasks:
                if task_name not in self.dispatchers:
                    self.dispatchers[task_name] = TaskDispatcher(
                        task_name, run_task, on_complete=self._task_completed, spawn=spawn
                    )

    def _task_completed(self, task_name: str, reload: bool):
        if reload and self.on_reload is not None:
            self.on_reload()

    def handle_path(self, path, exclude: Iterable[str] = ()) -> List[str]:
        """Trigger every task whose binding matches ``path``. Returns the task names."""
        triggered: List[str] = []
        for binding in self.bindings:
            if not binding.matches(path):
                continue
            for task_name in binding.tasks:
                if task_name in triggered or task_name in exclude:
                    continue
                logger.info(f"{path} changed, triggering '{task_name}'")
                self.dispatchers[task_name].trigger(reload=binding.reload)
                triggered.append(task_name)
        return triggered

    def watch_roots(self) -> List[Path]:
        """Existing directories to observe, with nested duplicates removed."""
        roots = set()
        for binding in self.bindings:
            for base in binding.matcher.bases():
                while not base.exists() and base != base.parent:
                    base = base.parent
                roots.add(base)
        ordered = sorted(roots, key=lambda p: len(p.parts))
        unique: List[Path] = []
        for root in ordered:
            if not any(root == u or u in root.parents for u in unique):
                unique.append(root)
        return unique

    def start(self):
        handler = _BindingEventHandler(self)
        self._observer = self._observer_factory()
        for root in self.watch_roots():
            logger.debug(f"Watching {root}")
            self._observer.schedule(handler, str(root), recursive=True)
        self._observer.start()
        for binding in self.bindings:
            print(f"👀 Watching {', '.join(binding.patterns)} → {', '.join(binding.tasks)}")

    def stop(self):
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    def run_forever(self, poll_interval: float = 1.0):
        """Watch until interrupted with Ctrl-C."""
        self.start()
        try:
            while True:
                time.sleep(poll_interval)
        except KeyboardInterrupt:
            print("\n🛑 Stopping watcher")
        finally:
            self.stop()
