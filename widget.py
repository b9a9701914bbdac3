"""
Client side of the slideshow: one TorqueWidget per configured instance.

Each widget owns a heartbeat job on the shared APScheduler scheduler. A
tick renders the widget and asks the helper for the next image once the
refresh interval has elapsed. WidgetHost reads the helper's events and
routes each one to the widget it concerns.
"""

import threading
import time

from apscheduler.jobstores.base import JobLookupError

from animations import AnimationCycler
from logger_config import get_logger
from messages import (BUILD_FILE_LIST, NODE_HELPER_DATA_URL, NODE_HELPER_FILE_COUNT,
                      NODE_HELPER_STOP, RETRIEVE_DATA_URL, ChannelClosed)

logger = get_logger('widget')

HEARTBEAT_SECONDS = 1.5
ANIMATION_SPEED_MS = 3000

STATUS_LOADING = 'Torque: Loading...'
STATUS_SUSPENDED = 'Torque: Suspended'
STATUS_HELPER_STOPPED = 'Torque: Helper Stopped'


class TorqueWidget:
    """
    Heartbeat state machine and display state of one widget

    Parameters
    ----------
    client_id:
        Identifier carried on every request so the helper can keep a
        separate session per widget.
    config:
        The widget's :class:`config.WidgetConfig`.
    send:
        Callable ``send(name, payload)`` delivering a request to the helper.
    scheduler:
        APScheduler scheduler hosting the heartbeat job.
    clock:
        Wall clock in seconds, ``time.time`` by default.
    renderer:
        Optional callable receiving each rendered frame.
    """

    def __init__(self, client_id, config, send, scheduler, clock=None, cycler=None, renderer=None):
        self.client_id = client_id
        self.config = config
        self.send = send
        self.scheduler = scheduler
        self.clock = clock or time.time
        self.cycler = cycler or AnimationCycler()
        self.renderer = renderer

        self.header_message = STATUS_LOADING
        self.files_loaded = False
        self.file_count = 0
        self.data_url = None
        self.data_name = None
        self.last_update_time = None
        self.running = False
        self.frame = None
        self.render_count = 0
        self._lock = threading.RLock()

    @property
    def job_id(self):
        return f'heartbeat_{self.client_id}'

    # lifecycle ---------------------------------------------------------
    def start(self):
        logger.info(f"Starting widget {self.client_id} with config => {self.config.to_dict()}")
        if self.config.randomize_animations:
            self.cycler.shuffle()
        self.enable_heartbeat(True)

    def suspend(self):
        self.enable_heartbeat(False, STATUS_SUSPENDED)

    def resume(self):
        self.enable_heartbeat(True)

    # heartbeat ---------------------------------------------------------
    def enable_heartbeat(self, enable=True, disable_status=''):
        with self._lock:
            self.last_update_time = self.clock()
            self._cancel_job()
            if enable:
                logger.info(f"Enable widget {self.client_id}")
                self.scheduler.add_job(
                    self.on_heartbeat,
                    'interval',
                    seconds=HEARTBEAT_SECONDS,
                    id=self.job_id,
                    replace_existing=True,
                    max_instances=1
                )
                self.running = True
            else:
                logger.info(f"Disable widget {self.client_id} status={disable_status}")
                self.running = False
                self.header_message = disable_status
                self.render()
            if enable and not self.files_loaded:
                self.request(BUILD_FILE_LIST)

    def on_heartbeat(self, immediate=False):
        with self._lock:
            now = self.clock()
            if immediate or now - self.last_update_time >= self.config.refresh_interval:
                self.last_update_time = now
                animate_in, animate_out = self.cycler.next_pair()
                self.render({'speed': ANIMATION_SPEED_MS, 'animate': {'in': animate_in, 'out': animate_out}})
                self.request(RETRIEVE_DATA_URL)

    def _cancel_job(self):
        if not self.running:
            return
        try:
            self.scheduler.remove_job(self.job_id)
        except JobLookupError:
            logger.debug(f"No heartbeat job to remove for {self.client_id}")

    # helper events -----------------------------------------------------
    def on_notification(self, name, payload):
        payload = payload or {}
        if name == NODE_HELPER_STOP:
            self.enable_heartbeat(False, STATUS_HELPER_STOPPED)
            return
        if payload.get('client_id') != self.client_id:
            return
        if name == NODE_HELPER_FILE_COUNT:
            self.on_files_loaded(payload)
        elif name == NODE_HELPER_DATA_URL:
            self.on_data(payload)
        else:
            logger.warning(f"{self.client_id} ignoring unknown event {name}")

    def on_files_loaded(self, payload):
        with self._lock:
            self.file_count = payload.get('file_count', 0)
            logger.info(f"{self.client_id} has {self.file_count} files")
            self.files_loaded = True
            if self.file_count > 0:
                self.request(RETRIEVE_DATA_URL)

    def on_data(self, payload):
        with self._lock:
            file_content = payload.get('file_content')
            first_data = self.data_url is None and file_content is not None
            self.header_message = payload.get('file_name') if self.config.show_header else ''
            self.data_name = payload.get('file_name')
            self.data_url = file_content
            if first_data and self.config.show_header:
                self.on_heartbeat(immediate=True)

    # output ------------------------------------------------------------
    def request(self, name):
        self.send(name, {'client_id': self.client_id, 'config': self.config.to_dict()})

    def render(self, options=None):
        options = options or {}
        animate = options.get('animate', {})
        self.frame = {
            'header': self.header_message,
            'data_name': self.data_name,
            'data_url': self.data_url,
            'animate_in': animate.get('in'),
            'animate_out': animate.get('out'),
            'speed': options.get('speed', 0),
            'rendered_at': self.clock(),
        }
        self.render_count += 1
        if self.renderer is not None:
            self.renderer(self, self.frame)
        if self.data_name:
            logger.info(f"Loaded {self.client_id} with {self.data_name}")

    def status(self):
        with self._lock:
            return {
                'client_id': self.client_id,
                'running': self.running,
                'files_loaded': self.files_loaded,
                'file_count': self.file_count,
                'header': self.header_message,
                'data_name': self.data_name,
                'refresh_interval_ms': self.config.refresh_interval_ms,
                'frame': self.frame,
            }


class WidgetHost:
    """Route helper events to widgets by client id."""

    def __init__(self, events, widgets=()):
        self.events = events
        self.widgets = {}
        for widget in widgets:
            self.add(widget)
        self._thread = None

    def add(self, widget):
        self.widgets[widget.client_id] = widget

    def get(self, client_id):
        return self.widgets.get(client_id)

    def dispatch(self, notification):
        if notification.name == NODE_HELPER_STOP:
            for widget in self.widgets.values():
                widget.on_notification(notification.name, notification.payload)
            return
        widget = self.widgets.get(notification.client_id)
        if widget is None:
            logger.warning(f"Dropping {notification.name} for unknown client {notification.client_id}")
            return
        widget.on_notification(notification.name, notification.payload)

    def start(self):
        for widget in self.widgets.values():
            widget.start()
        self._thread = threading.Thread(target=self.run, daemon=True, name='torque-events')
        self._thread.start()

    def join(self, timeout=None):
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def run(self):
        """Dispatch events until the channel is closed."""
        logger.info("Event dispatcher started")
        while True:
            try:
                notification = self.events.receive()
            except ChannelClosed:
                break
            if notification is None:
                continue
            try:
                self.dispatch(notification)
            except Exception:
                logger.exception(f"Failed to dispatch {notification.name}")
        logger.debug("Event dispatcher exiting")
