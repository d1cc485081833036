# storefront/sessions.py
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from fastapi import Depends, Request, Response
from jose import JWTError, jwt

from .config import Settings, get_settings
from .state import CartState, WishlistState

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


@dataclass
class ShopperSession:
    sid: str
    cart: CartState = field(default_factory=CartState)
    wishlist: WishlistState = field(default_factory=WishlistState)
    last_seen: float = field(default_factory=time.monotonic)


class SessionStore:
    """In-memory shopper sessions, one cart and one wishlist each.

    Sessions idle for more than ``max_idle`` seconds are dropped by a sweep
    that runs at most once every ``purge_interval`` seconds, on creation of
    a new session.
    """

    def __init__(self, max_idle: Optional[float] = None, purge_interval: float = 60.0) -> None:
        self._sessions: Dict[str, ShopperSession] = {}
        self.max_idle = max_idle
        self.purge_interval = purge_interval
        self._last_purge = time.monotonic()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, sid: str) -> Optional[ShopperSession]:
        return self._sessions.get(sid)

    def get_or_create(self, sid: Optional[str] = None) -> Tuple[ShopperSession, bool]:
        session = self._sessions.get(sid) if sid else None
        if session is not None:
            session.last_seen = time.monotonic()
            return session, False
        self._maybe_purge()
        session = ShopperSession(sid=sid or uuid.uuid4().hex)
        self._sessions[session.sid] = session
        logger.debug("session %s created", session.sid)
        return session, True

    def drop(self, sid: str) -> None:
        self._sessions.pop(sid, None)

    def _maybe_purge(self) -> None:
        if self.max_idle is None:
            return
        now = time.monotonic()
        if now - self._last_purge < self.purge_interval:
            return
        self._last_purge = now
        self.purge(self.max_idle)

    def purge(self, older_than: float) -> int:
        """Drop sessions idle for more than ``older_than`` seconds."""
        cutoff = time.monotonic() - older_than
        stale = [sid for sid, s in self._sessions.items() if s.last_seen < cutoff]
        for sid in stale:
            del self._sessions[sid]
        if stale:
            logger.info("purged %d idle sessions", len(stale))
        return len(stale)


def create_session_token(sid: str, settings: Settings) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.session_ttl_minutes)
    return jwt.encode({"sid": sid, "exp": expire}, settings.session_secret, algorithm=ALGORITHM)


def read_session_token(token: str, settings: Settings) -> Optional[str]:
    try:
        payload = jwt.decode(token, settings.session_secret, algorithms=[ALGORITHM])
    except JWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) and sid else None


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions


async def get_shopper_session(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
) -> ShopperSession:
    """Resolve the caller's session from the signed cookie, creating one if needed."""
    token = request.cookies.get(settings.session_cookie)
    sid = read_session_token(token, settings) if token else None

    session, created = store.get_or_create(sid)
    if created:
        response.set_cookie(
            settings.session_cookie,
            create_session_token(session.sid, settings),
            max_age=settings.session_ttl_minutes * 60,
            path="/",
            httponly=True,
            samesite="lax",
            secure=settings.session_cookie_secure,
        )
    return session
