"""
Sends EPP commands over a transport and decodes their responses.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Callable
from urllib.parse import urlencode

from registrar_console.domains.epp.protocol import EppResponse, build_command, parse_response
from registrar_console.domains.errors import TransportFailure
from registrar_console.domains.markup import tree_codec
from registrar_console.domains.markup.tree_codec import TreeValue
from registrar_console.infrastructure.transport.http_transport import Transport
from registrar_console.utils.config import xhr_path
from registrar_console.utils.logger import get_logger

if TYPE_CHECKING:
    from registrar_console.services.session_manager import Session

logger = get_logger()

CSRF_HEADER = "X-CSRF-Token"
CONTENT_TYPE = "application/epp+xml; charset=UTF-8"


class EppChannel:
    """Encodes, sends and decodes one command at a time for a session."""

    def __init__(
        self,
        transport: Transport,
        session: "Session",
        trid_factory: Callable[[], str] | None = None,
        path: str | None = None,
    ) -> None:
        self.transport = transport
        self.session = session
        self._trid_factory = trid_factory
        self.path = path if path is not None else xhr_path()

    def next_trid(self) -> str:
        if self._trid_factory is not None:
            return self._trid_factory()
        return f"{self.session.client_id}-{uuid.uuid4().hex[:8]}"

    def endpoint(self, client_id: str | None = None) -> str:
        return f"{self.path}?{urlencode({'clientId': client_id or self.session.client_id})}"

    async def execute(self, verb: str, body: TreeValue, client_id: str | None = None) -> EppResponse:
        """
        Send one command and return its parsed response.

        Raises:
            TransportFailure: On network errors or a non-2xx HTTP status.
            MalformedMarkup: If the response body cannot be decoded.
        """
        cl_trid = self.next_trid()
        document = tree_codec.encode(build_command(verb, body, cl_trid))
        uri = self.endpoint(client_id)
        headers = {
            CSRF_HEADER: self.session.xsrf_token,
            "Content-Type": CONTENT_TYPE,
        }
        logger.info("EPP %s %s (clTRID=%s)", verb, uri, cl_trid)
        status_code, text = await self.transport.send(uri, document, headers)
        if not 200 <= status_code < 300:
            raise TransportFailure(f"HTTP {status_code} from {uri}", status_code=status_code)
        response = parse_response(tree_codec.decode(text))
        logger.info("EPP %s result %s: %s (svTRID=%s)", verb, response.code, response.message, response.sv_trid)
        return response
