"""
Client-side session cache.

Holds the logged-in user's profile and session token and persists them to a
JSON file, the way the browser app keeps them in local storage.

Lifecycle:
    init()          hydrate from the file (missing or unreadable file → logged out)
    handle_authed() store user + token after a successful login
    clear()         logout: forget both and remove the file
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_SESSION_PATH = Path.home() / ".photomemo" / "session.json"


class ClientSession:

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path) if path is not None else DEFAULT_SESSION_PATH
        self.user: Optional[Dict[str, Any]] = None
        self.token: Optional[str] = None

    @property
    def is_authed(self) -> bool:
        return bool(self.token)

    def init(self) -> "ClientSession":
        """Load a previously persisted session, if any."""
        self.user, self.token = None, None
        if not self.path.exists():
            return self

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return self

        if isinstance(data, dict):
            user = data.get("user")
            token = data.get("token")
            self.user = user if isinstance(user, dict) else None
            self.token = token if isinstance(token, str) and token else None
        return self

    def handle_authed(self, user: Dict[str, Any], token: str) -> None:
        self.user = user
        self.token = token
        self._persist()

    def clear(self) -> None:
        self.user = None
        self.token = None
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def _persist(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"user": self.user, "token": self.token}),
            encoding="utf-8",
        )
