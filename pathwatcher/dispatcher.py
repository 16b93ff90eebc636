"""
This module relays filesystem notifications to the log.

It provides:

1. ListeningTask: a thread that drains one watched path's channel, logging
   every event and error until the channel is closed.
2. Dispatcher: registers paths with a Subscription, starts one ListeningTask
   per path and keeps track of them.

Listening threads are daemon threads. They end when their channel closes,
which happens when the subscription is closed.
"""

import logging
import threading

from pathwatcher.notify import ERROR, EVENT, ChannelClosed, Op, subscribe

logger = logging.getLogger(__name__)


def handle_event(event, log=logger):
    """Log an event, and the affected file when it was written to."""
    log.info("Event: %s", event)
    if event.has(Op.WRITE):
        log.info("Modified file: %s", event.name)


def handle_error(error, log=logger):
    log.warning("Error: %s", error)


class ListeningTask(threading.Thread):
    """
    A thread that waits for items on a path's channel and logs them.
    """

    def __init__(self, channel, log=None):
        """
        Initialize the listening thread.

        Args:
            channel (Channel): The channel to receive events and errors from.
            log (logging.Logger): Logger the items are written to.
        """
        super(ListeningTask, self).__init__(name=f"Listener-{channel.path}")
        self.channel = channel
        self.log = log or logger
        self.daemon = True  # Runs as a daemon thread so it will exit when the main program exits.

    def run(self):
        """
        Receive items in arrival order until the channel is closed.
        """
        self.log.debug("Listening on %s", self.channel.path)
        while True:
            try:
                kind, item = self.channel.receive()
            except ChannelClosed:
                break
            try:
                if kind == EVENT:
                    handle_event(item, self.log)
                elif kind == ERROR:
                    handle_error(item, self.log)
            except Exception as e:
                self.log.exception("Exception while handling %s from %s: %s", kind, self.channel.path, e)
        self.log.debug("Stopped listening on %s", self.channel.path)


class Dispatcher:
    """
    Registers watched paths and manages their listening threads.

    Attributes:
        subscription (Subscription): Source of notifications for all paths.
        tasks (dict): Listening threads keyed by watched path.
    """

    def __init__(self, subscription, log=None):
        self.subscription = subscription
        self.log = log or logger
        self.tasks = {}

    def watch(self, path):
        """
        Register a path and start its listening thread.

        Args:
            path (str): The path to watch. It is not checked beforehand.

        Returns:
            ListeningTask: The thread listening on the path.

        Raises:
            SubscriptionError: If the path cannot be registered.
        """
        if path in self.tasks:
            self.log.debug("Already watching %s", path)
            return self.tasks[path]

        channel = self.subscription.add(path)
        task = ListeningTask(channel, self.log)
        task.start()
        self.tasks[path] = task
        self.log.debug("Started listening thread: %s", task.name)
        return task

    def watch_all(self, paths):
        """Watch each path in order, stopping at the first failure."""
        for path in paths:
            self.watch(path)
        return self

    def get_status(self, path):
        """
        Get the status of the thread listening on a path.

        Returns:
            dict: A dictionary with thread information:
                - name (str): The thread's name
                - is_alive (bool): Whether the thread is still running
                - daemon (bool): Whether the thread is a daemon
                - id (int): Thread identifier
        """
        task = self.tasks[path]
        return {
            'name': str(task.name),
            'is_alive': bool(task.is_alive()),
            'daemon': bool(task.daemon),
            'id': task.ident
        }

    def get_all_statuses(self):
        """Get statuses for all listening threads, keyed by watched path."""
        return {path: self.get_status(path) for path in self.tasks}

    def close(self, timeout=5.0):
        """
        Close the subscription and wait for the listening threads to finish.

        Args:
            timeout (float, optional): Timeout in seconds to wait for each thread.
        """
        self.subscription.close()
        for task in self.tasks.values():
            self.log.debug("Joining thread: %s", task.name)
            task.join(timeout)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def start(configuration, subscription=None, log=None):
    """
    Register every configured path and return the running Dispatcher.

    If a path cannot be registered the subscription is closed, which ends
    the threads already started, and the error is raised.
    """
    if subscription is None:
        subscription = subscribe()
    dispatcher = Dispatcher(subscription, log)
    try:
        dispatcher.watch_all(configuration.paths)
    except Exception:
        # The registration error is re-raised even if closing fails.
        try:
            dispatcher.close()
        except Exception as close_error:
            dispatcher.log.exception("Error closing subscription: %s", close_error)
        raise
    return dispatcher


def block_until_stopped(stop_event, interval=1.0):
    """Wait until stop_event is set, waking up periodically for signals."""
    while not stop_event.wait(interval):
        pass
