"""
Notification source for Pathwatcher.

Wraps a watchdog observer and routes each watched path's notifications to
its own Channel:
- Translation of watchdog events into Event values with Op flags
- One ordered channel per path carrying both events and errors
- Error reporting when a watched path disappears
"""

import enum
import logging
import os
import queue
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import ObservedWatch

from pathwatcher import PathwatcherError

logger = logging.getLogger(__name__)

EVENT = "event"
ERROR = "error"


class SubscriptionError(PathwatcherError):
    """Raised when the observer cannot start or a path cannot be registered."""

    pass


class ChannelClosed(Exception):
    """Raised by Channel.receive once the channel is closed and drained."""

    pass


class Op(enum.Flag):
    """Kind of filesystem change."""

    CREATE = enum.auto()
    WRITE = enum.auto()
    REMOVE = enum.auto()
    RENAME = enum.auto()
    CHMOD = enum.auto()

    def __str__(self) -> str:
        return "|".join(member.name for member in Op if member in self)


@dataclass(frozen=True)
class Event:
    """A filesystem change affecting `name`."""

    name: str
    op: Op

    def has(self, op: Op) -> bool:
        return op in self.op

    def __str__(self) -> str:
        return f'{self.op} "{self.name}"'


class WatchError(Exception):
    """Error delivered on a watched path's error stream."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{message}: {path}")
        self.path = path


class Channel:
    """
    Ordered feed of events and errors for one watched path.

    Items are received as (kind, item) tuples in arrival order, where kind is
    EVENT or ERROR. Nothing is accepted after close().
    """

    def __init__(self, path: str):
        self.path = path
        self._queue: "queue.Queue[Tuple[Optional[str], object]]" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send_event(self, event: Event) -> None:
        self._put(EVENT, event)

    def send_error(self, error: Exception) -> None:
        self._put(ERROR, error)

    def _put(self, kind: Optional[str], item: object) -> None:
        with self._lock:
            if self._closed:
                return
            self._queue.put((kind, item))

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            # None marks the end of the stream.
            self._queue.put((None, None))

    def receive(self, timeout: Optional[float] = None) -> Tuple[str, object]:
        """
        Block until the next item arrives.

        Args:
            timeout: Seconds to wait; None waits without limit.

        Returns:
            Tuple of (kind, item)

        Raises:
            ChannelClosed: When the end-of-stream marker is reached.
            queue.Empty: When timeout expires first.
        """
        kind, item = self._queue.get(timeout=timeout)
        if kind is None:
            # Leave the marker for any other reader.
            self._queue.put((None, None))
            raise ChannelClosed(self.path)
        return kind, item


def _same_path(a: str, b: str) -> bool:
    return os.path.normpath(os.path.abspath(a)) == os.path.normpath(os.path.abspath(b))


def _content_key(st: os.stat_result) -> Tuple[int, int]:
    return st.st_mtime_ns, st.st_size


def _attr_key(st: os.stat_result) -> Tuple[int, int, int]:
    return st.st_mode, st.st_uid, st.st_gid


class ChannelHandler(FileSystemEventHandler):
    """
    Translates watchdog events for one watched path into channel items.

    watchdog reports content writes and attribute changes alike as
    modifications, so the handler keeps the last stat of every file it has
    seen and compares it on each modification:
    - mtime or size changed: WRITE
    - only mode or ownership changed: CHMOD
    - nothing changed (a repeated write notification): WRITE
    """

    def __init__(self, path: str, channel: Channel):
        super().__init__()
        self.path = path
        self.channel = channel
        self._stats: Dict[str, os.stat_result] = {}
        self._prime()

    def _prime(self) -> None:
        try:
            if os.path.isdir(self.path):
                with os.scandir(self.path) as entries:
                    for entry in entries:
                        if entry.is_file(follow_symlinks=False):
                            self._stats[entry.path] = entry.stat(follow_symlinks=False)
            else:
                self._stats[self.path] = os.stat(self.path)
        except OSError as e:
            logger.debug("Cannot read initial state of %s: %s", self.path, e)

    def _remember(self, path: str) -> Optional[os.stat_result]:
        try:
            st = os.stat(path, follow_symlinks=False)
        except OSError:
            self._stats.pop(path, None)
            return None
        self._stats[path] = st
        return st

    def _modified_op(self, path: str) -> Op:
        previous = self._stats.get(path)
        current = self._remember(path)
        if previous is None or current is None:
            return Op.WRITE
        if _content_key(previous) != _content_key(current):
            return Op.WRITE
        if _attr_key(previous) != _attr_key(current):
            return Op.CHMOD
        return Op.WRITE

    def _send(self, src_path, op: Op) -> None:
        self.channel.send_event(Event(os.fsdecode(src_path), op))

    def on_created(self, event: FileSystemEvent) -> None:
        src_path = os.fsdecode(event.src_path)
        self._remember(src_path)
        self._send(src_path, Op.CREATE)

    def on_modified(self, event: FileSystemEvent) -> None:
        # watchdog reports the parent directory as modified on child changes.
        if event.is_directory:
            return
        src_path = os.fsdecode(event.src_path)
        self._send(src_path, self._modified_op(src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        src_path = os.fsdecode(event.src_path)
        self._stats.pop(src_path, None)
        self._send(src_path, Op.REMOVE)
        if _same_path(src_path, self.path):
            self.channel.send_error(
                WatchError(self.path, "watched path is no longer accessible")
            )

    def on_moved(self, event: FileSystemEvent) -> None:
        src_path = os.fsdecode(event.src_path)
        self._stats.pop(src_path, None)
        self._send(src_path, Op.RENAME)
        dest_path = os.fsdecode(event.dest_path)
        if dest_path and _same_path(os.path.dirname(dest_path), self.path):
            self._remember(dest_path)
            self._send(dest_path, Op.CREATE)


class Subscription:
    """
    Live handle through which notifications for all added paths are delivered.

    Attributes:
        observer: The running watchdog observer
    """

    def __init__(self, observer):
        self.observer = observer
        self._channels: Dict[str, Channel] = {}
        self._lock = threading.Lock()
        self._closed = False

    @property
    def paths(self):
        return list(self._channels)

    def add(self, path: str) -> Channel:
        """
        Register a path and return the channel its notifications arrive on.

        Raises:
            SubscriptionError: If the subscription is closed or the path
                cannot be watched.
        """
        with self._lock:
            if self._closed:
                raise SubscriptionError(f"Cannot watch {path}: subscription is closed")
            if path in self._channels:
                return self._channels[path]

            try:
                os.stat(path)
            except OSError as e:
                raise SubscriptionError(f"Cannot watch {path}: {e}") from e

            channel = Channel(path)
            handler = ChannelHandler(path, channel)
            try:
                self.observer.schedule(handler, path, recursive=False)
            except OSError as e:
                self._discard_handler(handler, path)
                raise SubscriptionError(f"Cannot watch {path}: {e}") from e

            self._channels[path] = channel
            logger.debug("Registered watch on %s", path)
            return channel

    def _discard_handler(self, handler: ChannelHandler, path: str) -> None:
        # schedule() registers the handler before starting the emitter.
        watch = ObservedWatch(path, recursive=False)
        try:
            self.observer.remove_handler_for_watch(handler, watch)
        except KeyError:
            logger.debug("No handler left to discard for %s", path)

    def channel(self, path: str) -> Channel:
        return self._channels[path]

    def close(self) -> None:
        """Stop the observer and close every channel. Safe to call twice."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            channels = list(self._channels.values())

        self.observer.stop()
        if self.observer.is_alive():
            self.observer.join()
        for channel in channels:
            channel.close()
        logger.debug("Subscription closed (%d channels)", len(channels))


def subscribe(observer_class=Observer, timeout: Optional[float] = None) -> Subscription:
    """
    Start an observer and return a subscription bound to it.

    Args:
        observer_class: watchdog observer class, e.g. Observer or PollingObserver
        timeout: Optional observer timeout in seconds

    Raises:
        SubscriptionError: If the observer cannot be started.
    """
    try:
        observer = observer_class() if timeout is None else observer_class(timeout=timeout)
        observer.start()
    except OSError as e:
        raise SubscriptionError(f"Cannot start filesystem observer: {e}") from e
    return Subscription(observer)
