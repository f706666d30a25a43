"""
Session context on top of the hosted auth provider (Supabase Auth).

One AuthContext is built when the application starts. ``start()`` subscribes
to the provider's session changes and ``stop()`` unsubscribes; in between the
context tracks the signed-in user and their profile row.
"""

import logging
import threading
from datetime import date
from typing import Any, Callable
from uuid import UUID

from supabase import AuthError as ProviderAuthError

from app.core.config import settings
from app.core.errors import AuthError, NotAuthenticatedError, RemoteError
from app.core.store import ProfileStore
from app.schemas.profile import ProfileRecord

log = logging.getLogger(__name__)

UserListener = Callable[[UUID | None], None]


def _user_uuid(user: Any) -> UUID | None:
    if user is None:
        return None
    return UUID(str(user.id))


class AuthContext:
    def __init__(
        self,
        auth_client: Any,
        profiles: ProfileStore | None,
        reset_redirect_url: str | None = None,
    ):
        # auth_client is the provider SDK's auth namespace (supabase Client.auth)
        self._auth = auth_client
        self._profiles = profiles
        self._reset_redirect_url = reset_redirect_url or settings.PASSWORD_RESET_REDIRECT_URL

        self._lock = threading.RLock()
        self._subscription = None
        self._listeners: list[UserListener] = []

        self.user: Any = None
        self.profile: ProfileRecord | None = None
        self.loading = True

    @property
    def is_configured(self) -> bool:
        return self._auth is not None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> UUID | None:
        return _user_uuid(self.user)

    @property
    def email(self) -> str | None:
        return getattr(self.user, "email", None)

    def add_listener(self, listener: UserListener) -> None:
        """Called with the new user id whenever the signed-in user changes."""
        self._listeners.append(listener)

    # ---------- lifecycle ----------

    def start(self) -> None:
        if self._auth is None:
            self.loading = False
            return
        if self._subscription is not None:
            return

        self._subscription = self._auth.on_auth_state_change(self._on_auth_state_change)

        # a persisted session does not trigger the callback by itself
        try:
            session = self._auth.get_session()
        except ProviderAuthError as e:
            log.warning("could not restore auth session: %s", e)
            session = None
        self._on_auth_state_change("INITIAL_SESSION", session)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_auth_state_change(self, event: Any, session: Any) -> None:
        current = session.user if session is not None else None
        new_id = _user_uuid(current)

        with self._lock:
            previous_id = self.user_id
            changed = new_id != previous_id
            # same id still carries the provider's fresh copy (e.g. after USER_UPDATED)
            self.user = current

            if current is None:
                self.profile = None
                self.loading = False
            elif changed or self.profile is None or self.profile.id != new_id:
                self.loading = True
                self.profile = self._fetch_profile(new_id)
                self.loading = False

        log.info("auth state changed: %s (user=%s)", event, new_id)

        if changed:
            for listener in self._listeners:
                listener(new_id)

    def _fetch_profile(self, user_id: UUID) -> ProfileRecord | None:
        if self._profiles is None:
            return None
        try:
            profile = self._profiles.get(user_id)
        except RemoteError:
            log.exception("error fetching profile for %s", user_id)
            return None
        if profile is None:
            log.warning("no profile row for user %s", user_id)
        return profile

    # ---------- provider calls ----------

    def _require_client(self) -> Any:
        if self._auth is None:
            raise AuthError("Authentication is not configured")
        return self._auth

    def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except ProviderAuthError as e:
            raise AuthError(e.message or "Authentication failed") from e

    def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        height_cm: float,
        birth_date: date,
        gender: str,
        activity_level: int = 1,
    ) -> Any:
        """
        Register a member. The profile row is created by the provider's
        sign-up trigger from the metadata sent here.
        """
        client = self._require_client()
        response = self._call(client.sign_up, {
            "email": email,
            "password": password,
            "options": {
                "data": {
                    "full_name": full_name,
                    "height_cm": height_cm,
                    "birth_date": birth_date.isoformat(),
                    "gender": gender,
                    "activity_level": activity_level,
                    "is_public": False,
                },
            },
        })
        log.info("registered user %s", _user_uuid(response.user))
        return response.user

    def sign_in(self, email: str, password: str) -> Any:
        client = self._require_client()
        response = self._call(client.sign_in_with_password, {"email": email, "password": password})
        return response.user

    def sign_out(self) -> None:
        client = self._require_client()
        self._call(client.sign_out)

    def restore_session(self, access_token: str, refresh_token: str) -> Any:
        """Adopt a session handed over by the provider (e.g. a recovery link)."""
        client = self._require_client()
        response = self._call(client.set_session, access_token, refresh_token)
        return response.user

    def send_password_reset_email(self, email: str) -> None:
        client = self._require_client()
        self._call(client.reset_password_for_email, email, {"redirect_to": self._reset_redirect_url})

    def refresh_profile(self) -> ProfileRecord | None:
        user_id = self.user_id
        if user_id is None:
            return None
        profile = self._fetch_profile(user_id)
        with self._lock:
            self.profile = profile
        return profile

    def update_user_profile(self, changes: dict[str, Any]) -> ProfileRecord:
        user_id = self.user_id
        if user_id is None:
            raise NotAuthenticatedError()
        if self._profiles is None:
            raise RemoteError("Profile storage is not configured")

        profile = self._profiles.update(user_id, changes)
        with self._lock:
            self.profile = profile
        log.info("updated profile %s (%s)", user_id, ", ".join(sorted(changes)))
        return profile

    def update_user_account(self, email: str | None = None, password: str | None = None) -> Any:
        client = self._require_client()
        if self.user is None:
            raise NotAuthenticatedError()

        attributes: dict[str, str] = {}
        if email:
            attributes["email"] = email
        if password:
            attributes["password"] = password

        response = self._call(client.update_user, attributes)
        if response.user is not None:
            with self._lock:
                self.user = response.user
        return response.user
