"""
Authentication state of one console instance.

The transport login (cookie session plus anti-forgery token) happens outside
this engine. The EPP login is done here and is single-flight: concurrent
callers share one in-flight login task instead of racing duplicate commands.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from functools import partial

from registrar_console.domains.epp.protocol import CODE_ALREADY_LOGGED_IN, CODE_SUCCESS, EppResponse, login_body
from registrar_console.domains.errors import AuthenticationFailed
from registrar_console.services.epp_channel import EppChannel
from registrar_console.utils.logger import get_logger

logger = get_logger()


class AuthState(Enum):
    ANONYMOUS = "anonymous"
    TRANSPORT_AUTH = "transport_auth"
    PROTOCOL_AUTH = "protocol_auth"


@dataclass
class Session:
    client_id: str
    xsrf_token: str
    transport_authenticated: bool = False
    protocol_authenticated: bool = False
    pending_login: "asyncio.Task[None] | None" = None

    @property
    def state(self) -> AuthState:
        if not self.transport_authenticated:
            return AuthState.ANONYMOUS
        if self.protocol_authenticated:
            return AuthState.PROTOCOL_AUTH
        return AuthState.TRANSPORT_AUTH


class SessionManager:
    """Owns the session's EPP login handshake."""

    def __init__(self, session: Session, channel: EppChannel, password: str = "") -> None:
        self.session = session
        self.channel = channel
        self._password = password
        self._pending: dict[str, asyncio.Task[None]] = {}

    @property
    def state(self) -> AuthState:
        return self.session.state

    async def ensure_logged_in(self, client_id: str | None = None) -> None:
        """
        Make sure the session is logged in to EPP as client_id.

        Returns at once when already logged in as that client. Otherwise waits
        for the login in flight for that client, starting one if there is none.

        Raises:
            AuthenticationFailed: If there is no transport login, or the login
                command returns anything but success or already-logged-in.
            TransportFailure: If the login command cannot be delivered.
        """
        client_id = client_id or self.session.client_id
        if self.state is AuthState.PROTOCOL_AUTH and client_id == self.session.client_id:
            return
        if self.state is AuthState.ANONYMOUS:
            raise AuthenticationFailed("Not signed in to the console; sign in and reload.")

        pending = self._pending.get(client_id)
        if pending is None:
            pending = asyncio.ensure_future(self._login(client_id))
            self._pending[client_id] = pending
            self.session.pending_login = pending
            pending.add_done_callback(partial(self._login_done, client_id))
        # A cancelled caller must not cancel the login other callers wait on.
        await asyncio.shield(pending)

    def _login_done(self, client_id: str, task: "asyncio.Task[None]") -> None:
        self._pending.pop(client_id, None)
        if self.session.pending_login is task:
            self.session.pending_login = None
        if not task.cancelled():
            task.exception()

    async def _login(self, client_id: str) -> None:
        logger.info("EPP login for client %s", client_id)
        response = await self.channel.execute("login", login_body(client_id, self._password), client_id=client_id)
        if response.code in (CODE_SUCCESS, CODE_ALREADY_LOGGED_IN):
            self.session.client_id = client_id
            self.session.protocol_authenticated = True
            logger.info("EPP login accepted for %s (code %s)", client_id, response.code)
            return
        logger.warning("EPP login rejected for %s: %s %s", client_id, response.code, response.message)
        raise AuthenticationFailed(
            f"Login failed: {response.message or 'code ' + response.code}",
            code=response.code,
        )

    def reset_protocol_auth(self) -> None:
        """Drop back to TRANSPORT_AUTH so the next command logs in again."""
        if self.session.protocol_authenticated:
            logger.info("EPP session for %s ended; login required", self.session.client_id)
        self.session.protocol_authenticated = False

    def note_response(self, response: EppResponse) -> None:
        """Apply the logged-out reset when a command response reports the session is gone."""
        if response.signals_logged_out:
            self.reset_protocol_auth()
