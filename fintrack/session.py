"""
Client-held project sessions.

A session token is an unsigned JSON blob ``{project_id, project_name,
authenticated_at}`` kept in client storage. The server never stores or
re-checks it: record endpoints trust whatever project id the client sends.
Every place that admits access must run the ``SessionGuard`` itself.

Lifecycle:
    Unauthenticated --issue--> Authenticated(project, issued_at)
    Authenticated --expired | logout--> Unauthenticated

Tokens are never renewed in place; a fresh authentication issues a fresh
timestamp.
"""

from datetime import timedelta
from typing import Any, Callable, Dict, Optional
import json
import logging
import time

from pydantic import BaseModel, ValidationError

from fintrack.errors import AccessDeniedError

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(hours=24)

# Client storage keys
PROJECT_AUTH_KEY = "project_auth"
CONTRIBUTION_RECEIPT_KEY = "contribution_receipt"


def current_time_ms() -> int:
    """Wall clock in epoch milliseconds"""
    return int(time.time() * 1000)


class ProjectSession(BaseModel):
    project_id: str
    project_name: str
    authenticated_at: int  # epoch milliseconds

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.authenticated_at

    def is_expired(self, now_ms: int, ttl: timedelta = SESSION_TTL) -> bool:
        return self.age_ms(now_ms) >= int(ttl.total_seconds() * 1000)


class ClientSessionStorage:
    """
    Per-client key/value storage holding JSON strings.

    Scoped to one client instance the way browser session storage is scoped
    to one tab; nothing here is shared with the server.
    """

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str):
        self._items[key] = value

    def remove_item(self, key: str):
        self._items.pop(key, None)

    def get_json(self, key: str) -> Optional[Any]:
        raw = self.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"[SESSION] Discarding unreadable '{key}' entry")
            self.remove_item(key)
            return None

    def set_json(self, key: str, value: Any):
        self.set_item(key, json.dumps(value))


class SessionGuard:
    """
    Admits access to a project's data only while a client-held token is
    present, names the requested project and is younger than the TTL.

    Every failure raises the same AccessDeniedError so callers cannot tell
    which check failed.
    """

    def __init__(
        self,
        storage: ClientSessionStorage,
        ttl: timedelta = SESSION_TTL,
        clock: Callable[[], int] = current_time_ms
    ):
        self.storage = storage
        self.ttl = ttl
        self.clock = clock

    def issue(self, session: ProjectSession):
        """Store a freshly issued token, replacing any previous one"""
        self.storage.set_json(PROJECT_AUTH_KEY, session.model_dump())
        logger.info(f"[SESSION] Session stored for project {session.project_name}")

    def current(self) -> Optional[ProjectSession]:
        data = self.storage.get_json(PROJECT_AUTH_KEY)
        if data is None:
            return None
        try:
            return ProjectSession(**data)
        except (TypeError, ValidationError):
            self.clear()
            return None

    def clear(self):
        self.storage.remove_item(PROJECT_AUTH_KEY)

    def admit(self, project_name: str) -> ProjectSession:
        """
        Run the access checks in order:
        1. token present
        2. token names the requested project
        3. token younger than the TTL (an expired token is cleared)
        """
        session = self.current()
        if session is None:
            raise AccessDeniedError()

        if session.project_name != project_name:
            raise AccessDeniedError()

        if session.is_expired(self.clock(), self.ttl):
            self.clear()
            logger.info(f"[SESSION] Session for {session.project_name} expired")
            raise AccessDeniedError()

        return session

    def is_admitted(self, project_name: str) -> bool:
        try:
            self.admit(project_name)
        except AccessDeniedError:
            return False
        return True
