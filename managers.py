import base64
import os
import random

from errors import FileReadError, NoDataAvailable, ScanDirectoryError
from logger_config import get_logger
from messages import NODE_HELPER_DATA_URL, Notification

# Module logger
logger = get_logger('managers')

# Reference https://developer.mozilla.org/en-US/docs/Web/Media/Guides/Formats/Image_types
MIME_TYPES = (
    (('.apng',), 'image/apng'),
    (('.avif',), 'image/avif'),
    (('.gif',), 'image/gif'),
    (('.jpg', '.jpeg', '.jfif', '.pjpeg', '.pjp'), 'image/jpeg'),
    (('.png',), 'image/png'),
    (('.svg',), 'image/svg+xml'),
    (('.webp',), 'image/webp'),
)
DEFAULT_MIME_TYPE = 'image/jpeg'


def map_mime_type(filename):
    for suffixes, mime_type in MIME_TYPES:
        if filename.endswith(suffixes):
            return mime_type
    return DEFAULT_MIME_TYPE


def encode_data_url(filename, contents):
    payload = base64.b64encode(contents).decode('ascii')
    return f"data:{map_mime_type(filename)};base64,{payload}"


def shuffle_in_place(items, rng=None):
    """Uniform Fisher-Yates shuffle."""
    (rng or random).shuffle(items)
    return items


class FileScanner:
    def __init__(self, rng=None):
        self.rng = rng or random.Random()

    def scan(self, session, data_dir_paths, allowed_extensions):
        """
        Build the session's file list from its data directories

        Files already known to the session are skipped, so rescanning the
        same directories only picks up new files. The result replaces the
        session's list and is returned.
        """
        suffixes = tuple(allowed_extensions or ())
        known = set(session.files)
        result = []

        for path in data_dir_paths or ():
            if not path or not path.strip():
                continue
            try:
                for full_path in self.list_files(path):
                    if full_path.endswith(suffixes) and full_path not in known:
                        result.append(full_path)
                        known.add(full_path)
            except ScanDirectoryError as e:
                logger.error(f"{session.client_id} {e}")

        if session.config.randomize_images:
            shuffle_in_place(result, self.rng)

        session.replace_files(result)
        logger.info(f"{session.client_id} file count {len(result)}")
        return result

    def list_files(self, path):
        """Recursively list regular files below path, sorted per directory."""

        def on_error(err):
            if os.path.normpath(err.filename or '') == os.path.normpath(path):
                raise ScanDirectoryError(path, err) from err
            logger.warning(f"Skipping unreadable directory {err.filename}: {err}")

        if not os.path.isdir(path):
            raise ScanDirectoryError(path, FileNotFoundError(f"not a directory: {path}"))

        files = []
        for root, dirs, names in os.walk(path, onerror=on_error):
            dirs.sort()
            for name in sorted(names):
                full_path = os.path.join(root, name)
                if os.path.isfile(full_path):
                    files.append(full_path)
        return files


class PlaybackManager:
    def next(self, session):
        """
        Deliver the file at the session cursor, then advance

        Returns the NODE_HELPER_DATA_URL notification, or None when nothing
        could be delivered this cycle.
        """
        try:
            if not session.files:
                raise NoDataAvailable(session.client_id)
            session.clamp_cursor()
            file_name = session.current_file()
            file_content = encode_data_url(file_name, self.read_file(file_name))
        except NoDataAvailable as e:
            logger.warning(str(e))
            return None
        except FileReadError as e:
            logger.error(f"{session.client_id} {e}")
            return None

        logger.info(f"Sending {session.client_id} index={session.cursor} file_name={file_name}")
        session.last_served = file_name
        session.advance()
        return Notification(NODE_HELPER_DATA_URL, {
            'client_id': session.client_id,
            'file_name': file_name,
            'file_content': file_content,
        })

    @staticmethod
    def read_file(file_name):
        try:
            with open(file_name, 'rb') as f:
                return f.read()
        except OSError as e:
            raise FileReadError(file_name, e) from e
