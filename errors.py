"""
Exceptions raised by the torque helper.

None of these is fatal: each one is caught where the failing cycle is
handled and turned into a log record.
"""


class TorqueError(Exception):
    """Base exception for torque."""
    pass


class ScanDirectoryError(TorqueError):
    """A configured data directory could not be listed."""

    def __init__(self, path, reason):
        super().__init__(f"failed to read files in {path} due to {reason}")
        self.path = path
        self.reason = reason


class FileReadError(TorqueError):
    """A previously scanned file could not be read."""

    def __init__(self, path, reason):
        super().__init__(f"failed to read {path} due to {reason}")
        self.path = path
        self.reason = reason


class NoDataAvailable(TorqueError):
    """Data was requested for a session that has no files."""

    def __init__(self, client_id):
        super().__init__(f"{client_id} attempted to request data when none is available")
        self.client_id = client_id


class ConfigurationError(TorqueError):
    """The application config file is unreadable or malformed."""
    pass
