"""
Named notifications exchanged between a widget and the helper.

A Channel wraps anything with queue semantics (``queue.Queue`` inside one
process, ``multiprocessing.Queue`` across processes). Requests flow from
widgets to the helper on one channel and events flow back on another.
"""

import queue
from dataclasses import dataclass, field

from logger_config import get_logger

logger = get_logger('messages')

# widget -> helper
BUILD_FILE_LIST = 'BUILD_FILE_LIST'
RETRIEVE_DATA_URL = 'RETRIEVE_DATA_URL'

# helper -> widget
NODE_HELPER_FILE_COUNT = 'NODE_HELPER_FILE_COUNT'
NODE_HELPER_DATA_URL = 'NODE_HELPER_DATA_URL'
NODE_HELPER_STOP = 'NODE_HELPER_STOP'


@dataclass
class Notification:
    name: str
    payload: dict = field(default_factory=dict)

    @property
    def client_id(self):
        return self.payload.get('client_id') if isinstance(self.payload, dict) else None


class ChannelClosed(Exception):
    """Raised by Channel.receive once the shutdown sentinel was read."""


class Channel:
    """One direction of the widget/helper link."""

    _SENTINEL = None

    def __init__(self, backend=None, name='channel'):
        self._queue = backend if backend is not None else queue.Queue()
        self.name = name

    def send(self, name, payload=None):
        notification = Notification(name, payload if payload is not None else {})
        logger.debug(f"{self.name} -> {name} client={notification.client_id}")
        self._queue.put(notification)
        return notification

    def receive(self, timeout=None):
        """
        Block for the next notification

        Returns None when the timeout expires, raises ChannelClosed once the
        sentinel put by close() is read.
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is self._SENTINEL:
            raise ChannelClosed(self.name)
        return item

    def close(self):
        self._queue.put(self._SENTINEL)
