from config import WidgetConfig


class ClientSession:
    def __init__(self, client_id):
        self.client_id = client_id
        self.files = []
        self.cursor = 0
        self.config = WidgetConfig()
        self.last_served = None

    def replace_files(self, files):
        self.files = list(files)
        self.clamp_cursor()

    def clamp_cursor(self):
        # A rescan may shrink the list below the cursor
        if not self.files or not 0 <= self.cursor < len(self.files):
            self.cursor = 0

    def current_file(self):
        return self.files[self.cursor] if self.files else None

    def advance(self):
        if self.files:
            self.cursor = (self.cursor + 1) % len(self.files)

    def to_dict(self):
        return {
            'client_id': self.client_id,
            'file_count': len(self.files),
            'cursor': self.cursor,
            'last_served': self.last_served,
        }


class SessionRegistry:
    """Per-client sessions owned by the helper, created on first reference."""

    def __init__(self):
        self._sessions = {}

    def get(self, client_id):
        session = self._sessions.get(client_id)
        if session is None:
            session = ClientSession(client_id)
            self._sessions[client_id] = session
        return session

    def client_ids(self):
        return list(self._sessions)

    def __contains__(self, client_id):
        return client_id in self._sessions

    def __len__(self):
        return len(self._sessions)
