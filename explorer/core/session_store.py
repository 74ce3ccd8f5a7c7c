"""
Session Store — In-Memory Registry of Explorer Sessions
=========================================================
Bounded LRU with idle expiry. One ExplorerSession per uploaded dataset;
nothing survives a process restart.

Interface mirrors a request-scoped dependency:
  from explorer.core.session_store import get_store
  store = get_store()
"""

import logging
import time
from collections import OrderedDict
from typing import Dict, List, Optional

from explorer.config import settings
from explorer.core.analysis import ExplorerSession, TypeInference

logger = logging.getLogger(__name__)


class SessionStore:

    def __init__(self, max_size: int = 100, ttl_seconds: int = 3600, sample_size: int = 100):
        self._sessions: "OrderedDict[str, ExplorerSession]" = OrderedDict()
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._sample_size = sample_size

    def create(self) -> ExplorerSession:
        self._expire()
        session = ExplorerSession(type_inference=TypeInference(sample_size=self._sample_size))
        if len(self._sessions) >= self._max_size:
            oldest, _ = self._sessions.popitem(last=False)
            logger.info(f"Evicted least recently used session {oldest}")
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Optional[ExplorerSession]:
        self._expire()
        session = self._sessions.get(session_id)
        if session is None:
            return None
        session.touch()
        self._sessions.move_to_end(session_id)
        return session

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def ids(self) -> List[str]:
        return list(self._sessions)

    def clear(self):
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)

    def stats(self) -> Dict[str, int]:
        return {"sessions": len(self._sessions), "max_sessions": self._max_size}

    def _expire(self):
        cutoff = time.time() - self._ttl
        stale = [sid for sid, s in self._sessions.items() if s.last_used < cutoff]
        for sid in stale:
            del self._sessions[sid]
        if stale:
            logger.info(f"Expired {len(stale)} idle sessions")


_store: Optional[SessionStore] = None


def get_store() -> SessionStore:
    """Process-wide store, created on first use."""
    global _store
    if _store is None:
        _store = SessionStore(
            max_size=settings.MAX_SESSIONS,
            ttl_seconds=settings.SESSION_TTL_SECONDS,
            sample_size=settings.TYPE_SAMPLE_SIZE,
        )
    return _store
