"""
In-memory transport double and EPP documents used across the tests.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Any

CLIENT_ID = "jartine"
XSRF_TOKEN = "☢"
TRID = "abc-1234"


@dataclass
class SentRequest:
    uri: str
    body: str
    headers: dict[str, str]


@dataclass
class Held:
    """A reply that is only delivered once release() is called."""

    status: int
    body: str
    event: asyncio.Event = field(default_factory=asyncio.Event)

    def release(self) -> None:
        self.event.set()


class ScriptedTransport:
    """Transport double: records requests and plays back queued replies in order."""

    def __init__(self) -> None:
        self.sent: list[SentRequest] = []
        self._replies: deque[Any] = deque()

    def reply(self, body: str, status: int = 200) -> None:
        self._replies.append((status, body))

    def fail(self, error: Exception) -> None:
        self._replies.append(error)

    def hold(self, body: str, status: int = 200) -> Held:
        held = Held(status, body)
        self._replies.append(held)
        return held

    @property
    def pending(self) -> int:
        return len(self._replies)

    async def send(self, uri: str, body: str, headers: dict[str, str]) -> tuple[int, str]:
        self.sent.append(SentRequest(uri, body, dict(headers)))
        if not self._replies:
            raise AssertionError(f"Unexpected request to {uri}: {body}")
        reply = self._replies.popleft()
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, Held):
            await reply.event.wait()
            return reply.status, reply.body
        return reply


def epp_response(code: str = "1000", msg: str = "Command completed successfully", res_data: str = "", extra: str = "") -> str:
    return (
        '<?xml version="1.0"?>'
        '<epp xmlns="urn:ietf:params:xml:ns:epp-1.0">'
        "  <response>"
        f'    <result code="{code}">'
        f"      <msg>{msg}</msg>"
        "    </result>"
        f"    {res_data}"
        f"    {extra}"
        "    <trID>"
        f"      <clTRID>{TRID}</clTRID>"
        "      <svTRID>ytk1RO+8SmaDQxrTIdulnw==-4</svTRID>"
        "    </trID>"
        "  </response>"
        "</epp>"
    )


def domain_inf_data(name: str, registrant: str, pw: str, hosts: tuple[str, ...] = ()) -> str:
    ns = ""
    if hosts:
        ns = "<domain:ns>" + "".join(f"<domain:hostObj>{h}</domain:hostObj>" for h in hosts) + "</domain:ns>"
    return (
        "<resData>"
        '  <domain:infData xmlns:domain="urn:ietf:params:xml:ns:domain-1.0">'
        f"    <domain:name>{name}</domain:name>"
        "    <domain:roid>6-roid</domain:roid>"
        '    <domain:status s="inactive"/>'
        f"    <domain:registrant>{registrant}</domain:registrant>"
        '    <domain:contact type="admin">&lt;justine&gt;</domain:contact>'
        '    <domain:contact type="billing">candycrush</domain:contact>'
        '    <domain:contact type="tech">krieger</domain:contact>'
        f"    {ns}"
        "    <domain:clID>justine</domain:clID>"
        "    <domain:crID>justine</domain:crID>"
        "    <domain:crDate>2014-07-10T02:17:02Z</domain:crDate>"
        "    <domain:exDate>2015-07-10T02:17:02Z</domain:exDate>"
        "    <domain:authInfo>"
        f"      <domain:pw>{pw}</domain:pw>"
        "    </domain:authInfo>"
        "  </domain:infData>"
        "</resData>"
    )


JUSTINE_INFO = epp_response(
    res_data=domain_inf_data("justine.lol", "GK Chesterton", "lolcat", ("ns1.justine.lol", "ns2.justine.lol"))
)
ALREADY_LOGGED_IN = epp_response("2002", "Registrar is already logged in")


def command(inner: str) -> str:
    """An outbound command document around inner, with the fixed test clTRID."""
    return (
        '<?xml version="1.0"?>'
        '<epp xmlns="urn:ietf:params:xml:ns:epp-1.0">'
        f"  <command>{inner}<clTRID>{TRID}</clTRID></command>"
        "</epp>"
    )

