"""Session/identity store.

The Flask session (or any mutable mapping in tests) holds the raw state; handlers
only ever see the immutable ``RequestContext`` built from it at the start of a
request.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Callable, MutableMapping, Optional

from ..common.datetime_utils import epoch_seconds
from ..core.constants import CSRF_TOKEN_BYTES, SESSION_IDLE_TIMEOUT_SECONDS, SESSION_ROTATE_INTERVAL_SECONDS
from ..core.enums import Role
from ..core.exceptions import Unauthenticated

logger = logging.getLogger(__name__)

_USER_ID = "user_id"
_USERNAME = "username"
_ROLE = "role"
_CSRF = "csrf_token"
_SID = "sid"
_LAST_ACTIVITY = "last_activity"
_LAST_ROTATION = "last_rotation"
REDIRECT_AFTER_LOGIN = "redirect_after_login"


@dataclass(frozen=True)
class RequestContext:
    """Who is calling, threaded explicitly into every service call."""

    user_id: Optional[int]
    username: Optional[str]
    role: Optional[Role]
    csrf_token: str = ""

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None and self.role is not None

    @classmethod
    def anonymous(cls, csrf_token: str = "") -> "RequestContext":
        return cls(user_id=None, username=None, role=None, csrf_token=csrf_token)


class SessionStore:
    def __init__(
        self,
        state: MutableMapping,
        *,
        idle_timeout: int = SESSION_IDLE_TIMEOUT_SECONDS,
        rotate_interval: int = SESSION_ROTATE_INTERVAL_SECONDS,
        clock: Callable[[], float] = epoch_seconds,
    ):
        self._state = state
        self._idle_timeout = int(idle_timeout)
        self._rotate_interval = int(rotate_interval)
        self._clock = clock

    def begin(self) -> RequestContext:
        """Run the per-request bookkeeping and return the caller's context.

        Raises ``Unauthenticated(reason="session_timeout")`` after destroying the
        session when an authenticated session has been idle too long.
        """
        now = self._clock()

        last_rotation = self._state.get(_LAST_ROTATION)
        if last_rotation is None:
            self._state[_SID] = secrets.token_hex(16)
            self._state[_LAST_ROTATION] = now
        elif now - float(last_rotation) > self._rotate_interval:
            self._rotate(now)

        if self.is_authenticated():
            last_activity = self._state.get(_LAST_ACTIVITY)
            if last_activity is not None and now - float(last_activity) > self._idle_timeout:
                logger.info("Session for user %s timed out", self._state.get(_USER_ID))
                self.destroy()
                raise Unauthenticated("Session expired", reason="session_timeout")
            self._state[_LAST_ACTIVITY] = now

        self.csrf_token()
        return self.context()

    def login(self, *, user_id: int, username: str, role: Role) -> RequestContext:
        # Drop everything from the anonymous session so nothing carries over.
        redirect_to = self._state.get(REDIRECT_AFTER_LOGIN)
        self._state.clear()
        now = self._clock()
        self._state[_USER_ID] = int(user_id)
        self._state[_USERNAME] = username
        self._state[_ROLE] = role.value
        self._state[_LAST_ACTIVITY] = now
        self._rotate(now)
        self._state[_CSRF] = secrets.token_hex(CSRF_TOKEN_BYTES)
        if redirect_to:
            self._state[REDIRECT_AFTER_LOGIN] = redirect_to
        return self.context()

    def destroy(self) -> None:
        self._state.clear()

    def is_authenticated(self) -> bool:
        return bool(self._state.get(_USER_ID))

    def current_user_id(self) -> Optional[int]:
        value = self._state.get(_USER_ID)
        return int(value) if value else None

    def current_role(self) -> Optional[Role]:
        value = self._state.get(_ROLE)
        try:
            return Role(value) if value else None
        except ValueError:
            return None

    def csrf_token(self) -> str:
        token = self._state.get(_CSRF)
        if not token:
            token = secrets.token_hex(CSRF_TOKEN_BYTES)
            self._state[_CSRF] = token
        return token

    def pop_redirect_after_login(self) -> Optional[str]:
        return self._state.pop(REDIRECT_AFTER_LOGIN, None)

    def remember_redirect(self, target: str) -> None:
        self._state[REDIRECT_AFTER_LOGIN] = target

    def context(self) -> RequestContext:
        if not self.is_authenticated():
            return RequestContext.anonymous(csrf_token=self._state.get(_CSRF, ""))
        return RequestContext(
            user_id=self.current_user_id(),
            username=self._state.get(_USERNAME),
            role=self.current_role(),
            csrf_token=self._state.get(_CSRF, ""),
        )

    def _rotate(self, now: float) -> None:
        # A fresh nonce changes the signed cookie value. With client-side sessions the
        # previous cookie is not revoked; it stays usable until the idle timeout expires.
        self._state[_SID] = secrets.token_hex(16)
        self._state[_LAST_ROTATION] = now
