"""
EPP command envelopes and response parsing on top of the tree codec.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from registrar_console.domains.errors import MalformedMarkup
from registrar_console.domains.markup.tree_codec import TEXT_KEY, TreeValue, as_list, text_of

EPP_NS = "urn:ietf:params:xml:ns:epp-1.0"
DOMAIN_NS = "urn:ietf:params:xml:ns:domain-1.0"
CONTACT_NS = "urn:ietf:params:xml:ns:contact-1.0"
HOST_NS = "urn:ietf:params:xml:ns:host-1.0"

OBJECT_URIS = (HOST_NS, DOMAIN_NS, CONTACT_NS)

CODE_SUCCESS = "1000"
CODE_ALREADY_LOGGED_IN = "2002"
# 2002 is "command use error"; on anything but login it means the session is gone.
CODE_COMMAND_USE_ERROR = "2002"
SESSION_CLOSED_CODES = frozenset({"2500", "2501", "2502"})

COMMAND_VERBS = ("login", "info", "create", "update")


@dataclass(frozen=True)
class EppResponse:
    """The parts of an EPP response the console acts on."""

    code: str
    message: str
    res_data: TreeValue | None = None
    extension: TreeValue | None = None
    cl_trid: str = ""
    sv_trid: str = ""

    @property
    def success(self) -> bool:
        return self.code == CODE_SUCCESS

    @property
    def signals_logged_out(self) -> bool:
        """True when the server reports that the protocol session no longer exists."""
        if self.code in SESSION_CLOSED_CODES:
            return True
        return self.code == CODE_COMMAND_USE_ERROR and "not logged in" in self.message.lower()


def build_command(verb: str, body: TreeValue, cl_trid: str) -> TreeValue:
    """Wrap a command body as ``epp/command/<verb>`` with its client transaction id."""
    if verb not in COMMAND_VERBS:
        raise ValueError(f"Unsupported EPP command {verb!r}")
    return {
        "epp": {
            "@xmlns": EPP_NS,
            "command": {
                verb: body,
                "clTRID": {TEXT_KEY: cl_trid},
            },
        },
    }


def login_body(client_id: str, password: str = "") -> TreeValue:
    return {
        "clID": {TEXT_KEY: client_id},
        "pw": {TEXT_KEY: password} if password else {},
        "options": {
            "version": {TEXT_KEY: "1.0"},
            "lang": {TEXT_KEY: "en"},
        },
        "svcs": {
            "objURI": [{TEXT_KEY: uri} for uri in OBJECT_URIS],
        },
    }


def parse_response(document: TreeValue) -> EppResponse:
    """
    Extract result code, message, payload and transaction ids from a decoded response.

    Raises:
        MalformedMarkup: If the document is not an ``epp/response`` with a result code.
    """
    epp = document.get("epp")
    response = epp.get("response") if isinstance(epp, dict) else None
    if not isinstance(response, dict):
        raise MalformedMarkup("Expected an <epp><response> document")
    results = as_list(response.get("result"))
    if not results or "@code" not in results[0]:
        raise MalformedMarkup("EPP response carries no result code")
    result = results[0]
    tr_id: Any = response.get("trID") or {}
    return EppResponse(
        code=result["@code"],
        message=text_of(result.get("msg")),
        res_data=response.get("resData"),
        extension=response.get("extension"),
        cl_trid=text_of(tr_id.get("clTRID")) if isinstance(tr_id, dict) else "",
        sv_trid=text_of(tr_id.get("svTRID")) if isinstance(tr_id, dict) else "",
    )
