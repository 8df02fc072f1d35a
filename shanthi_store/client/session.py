from typing import Callable, List, Optional

import structlog

logger = structlog.get_logger()

LOGIN = "login"
LOGOUT = "logout"


class AuthSession:
    """Token holder for one storefront session.

    Created when the session starts and reset on logout; cart, wishlist and
    migration state hang off it instead of living in module globals.
    """

    def __init__(self, token: Optional[str] = None, user: Optional[dict] = None):
        self.token = token
        self.user = user
        self.migrated = False
        self._listeners: List[Callable[[str, "AuthSession"], None]] = []

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def add_listener(self, listener: Callable[[str, "AuthSession"], None]) -> None:
        self._listeners.append(listener)

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self)

    def login(self, token: str, user: Optional[dict] = None) -> None:
        was_authenticated = self.is_authenticated
        self.token = token
        self.user = user
        if not was_authenticated:
            logger.info("session_authenticated", user_id=(user or {}).get("id"))
            self._emit(LOGIN)

    def logout(self) -> None:
        if not self.is_authenticated:
            return
        user_id = (self.user or {}).get("id")
        self.token = None
        self.user = None
        self.migrated = False
        logger.info("session_logged_out", user_id=user_id)
        self._emit(LOGOUT)
