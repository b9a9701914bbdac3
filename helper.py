"""
Helper process: scans data directories and serves images to widgets.

Requests are read from the inbound channel and handled one at a time in
arrival order, so every RETRIEVE_DATA_URL observes the file list left by
the last completed BUILD_FILE_LIST for the same client.
"""

from config import WidgetConfig
from logger_config import get_logger, setup_logger
from managers import FileScanner, PlaybackManager
from messages import (BUILD_FILE_LIST, NODE_HELPER_FILE_COUNT, NODE_HELPER_STOP,
                      RETRIEVE_DATA_URL, Channel, ChannelClosed)
from state import SessionRegistry

logger = get_logger('helper')


class HelperServer:
    def __init__(self, events, requests=None, scanner=None, playback=None, sessions=None):
        self.events = events
        self.requests = requests
        self.scanner = scanner if scanner is not None else FileScanner()
        self.playback = playback if playback is not None else PlaybackManager()
        self.sessions = sessions if sessions is not None else SessionRegistry()
        self._handlers = {
            BUILD_FILE_LIST: self.build_file_list,
            RETRIEVE_DATA_URL: self.retrieve_data_url,
        }
        self._stopped = False

    def handle(self, name, payload):
        if not isinstance(payload, dict) or 'client_id' not in payload:
            logger.warning(f"Received {name} with {payload}")
            return
        handler = self._handlers.get(name)
        if handler is None:
            logger.warning(f"Ignoring unknown request {name} from {payload['client_id']}")
            return
        handler(payload['client_id'], payload.get('config'))

    def build_file_list(self, client_id, config=None):
        session = self.sessions.get(client_id)
        if config is not None:
            session.config = WidgetConfig.from_dict(config)
        self.scanner.scan(session, session.config.data_dir_paths, session.config.allowed_extensions)

        file_count = len(session.files)
        self.events.send(NODE_HELPER_FILE_COUNT, {'client_id': client_id, 'file_count': file_count})
        if file_count > 0:
            self.retrieve_data_url(client_id)
        return file_count

    def retrieve_data_url(self, client_id, config=None):
        session = self.sessions.get(client_id)
        if config is not None:
            session.config = WidgetConfig.from_dict(config)
        notification = self.playback.next(session)
        if notification is not None:
            self.events.send(notification.name, notification.payload)
        return notification

    def serve_forever(self, poll_interval=None):
        """Handle requests until the inbound channel is closed."""
        logger.info("Helper started")
        try:
            while True:
                notification = self.requests.receive(timeout=poll_interval)
                if notification is None:
                    continue
                try:
                    self.handle(notification.name, notification.payload)
                except Exception:
                    logger.exception(f"Failed to handle {notification.name}")
        except ChannelClosed:
            logger.info("Request channel closed")
        finally:
            self.stop()

    def stop(self):
        if self._stopped:
            return
        self._stopped = True
        logger.info("Stopping helper")
        self.events.send(NODE_HELPER_STOP, {})


def run_helper(request_queue, event_queue, log_dir='logs', log_level='INFO'):
    """Entry point of the helper process."""
    # Handlers inherited through fork point at the display process's log file
    setup_logger('torque', log_dir=log_dir, level=log_level, suffix='helper', replace_handlers=True)
    server = HelperServer(
        Channel(event_queue, name='events'),
        Channel(request_queue, name='requests'),
    )
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Helper interrupted")
