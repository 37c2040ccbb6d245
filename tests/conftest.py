"""
Shared fixtures: a console wired to a scripted transport.
"""

from __future__ import annotations

import pytest

from registrar_console.orchestration.console_controller import ConsoleController
from registrar_console.services.epp_channel import EppChannel
from registrar_console.services.session_manager import Session, SessionManager
from tests.epp_fixtures import CLIENT_ID, TRID, XSRF_TOKEN, ScriptedTransport


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def session() -> Session:
    return Session(client_id=CLIENT_ID, xsrf_token=XSRF_TOKEN, transport_authenticated=True)


@pytest.fixture
def channel(transport: ScriptedTransport, session: Session) -> EppChannel:
    return EppChannel(transport, session, trid_factory=lambda: TRID, path="/registrar-xhr")


@pytest.fixture
def sessions(session: Session, channel: EppChannel) -> SessionManager:
    return SessionManager(session, channel)


@pytest.fixture
def controller(sessions: SessionManager, channel: EppChannel) -> ConsoleController:
    return ConsoleController(sessions, channel)
