"""
Tests for EPP envelopes, response parsing and the per-object command bodies.
"""

from __future__ import annotations

import pytest

from registrar_console.domains.epp.protocol import (
    EppResponse,
    build_command,
    login_body,
    parse_response,
)
from registrar_console.domains.epp.resources import CONTACT, DOMAIN, HOST, RESOURCES
from registrar_console.domains.errors import MalformedMarkup
from registrar_console.domains.markup.tree_codec import TEXT_KEY, decode, encode
from tests.epp_fixtures import ALREADY_LOGGED_IN, JUSTINE_INFO, TRID, command, epp_response


def test_login_command_matches_wire_shape() -> None:
    expected = decode(command(
        "<login>"
        "  <clID>jartine</clID>"
        "  <pw/>"
        "  <options><version>1.0</version><lang>en</lang></options>"
        "  <svcs>"
        "    <objURI>urn:ietf:params:xml:ns:host-1.0</objURI>"
        "    <objURI>urn:ietf:params:xml:ns:domain-1.0</objURI>"
        "    <objURI>urn:ietf:params:xml:ns:contact-1.0</objURI>"
        "  </svcs>"
        "</login>"
    ))
    assert decode(encode(build_command("login", login_body("jartine"), TRID))) == expected


def test_login_body_carries_password_when_given() -> None:
    assert login_body("jartine", "hunter2")["pw"] == {TEXT_KEY: "hunter2"}


def test_build_command_rejects_unknown_verb() -> None:
    with pytest.raises(ValueError):
        build_command("delete", {}, TRID)


def test_parse_success_response() -> None:
    response = parse_response(decode(JUSTINE_INFO))
    assert response.success
    assert response.code == "1000"
    assert response.message == "Command completed successfully"
    assert response.cl_trid == TRID
    assert response.sv_trid == "ytk1RO+8SmaDQxrTIdulnw==-4"
    assert "domain:infData" in response.res_data


def test_parse_already_logged_in_is_not_success() -> None:
    response = parse_response(decode(ALREADY_LOGGED_IN))
    assert response.code == "2002"
    assert not response.success
    assert not response.signals_logged_out


@pytest.mark.parametrize(
    "code,msg,expected",
    [
        ("2500", "Command failed; server closing connection", True),
        ("2002", "Registrar is not logged in.", True),
        ("2303", "Object does not exist", False),
        ("1000", "ok", False),
    ],
)
def test_signals_logged_out(code: str, msg: str, expected: bool) -> None:
    assert EppResponse(code=code, message=msg).signals_logged_out is expected


def test_parse_rejects_non_response_documents() -> None:
    with pytest.raises(MalformedMarkup):
        parse_response(decode("<epp><command/></epp>"))
    with pytest.raises(MalformedMarkup):
        parse_response(decode("<epp><response><result/></response></epp>"))


def test_resources_registry() -> None:
    assert set(RESOURCES) == {"domain", "contact", "host"}


def test_domain_info_body() -> None:
    body = DOMAIN.info_body("justine.lol")
    assert body == {
        "domain:info": {
            "@xmlns:domain": "urn:ietf:params:xml:ns:domain-1.0",
            "domain:name": {"@hosts": "all", TEXT_KEY: "justine.lol"},
        }
    }


def test_info_tree_requires_inf_data() -> None:
    with pytest.raises(MalformedMarkup):
        DOMAIN.info_tree(parse_response(decode(epp_response())))


def test_domain_update_diffs_nameservers_and_contacts() -> None:
    before = {
        "domain:registrant": {TEXT_KEY: "GK"},
        "domain:contact": [{"@type": "admin", TEXT_KEY: "a"}, {"@type": "tech", TEXT_KEY: "t"}],
        "domain:ns": {"domain:hostObj": [{TEXT_KEY: "ns1.x"}, {TEXT_KEY: "ns2.x"}]},
    }
    after = {
        "domain:registrant": {TEXT_KEY: "GK"},
        "domain:contact": [{"@type": "admin", TEXT_KEY: "a"}, {"@type": "billing", TEXT_KEY: "b"}],
        "domain:ns": {"domain:hostObj": [{TEXT_KEY: "ns2.x"}, {TEXT_KEY: "ns3.x"}]},
    }
    update = DOMAIN.update_body("x.lol", before, after)["domain:update"]
    assert update["domain:add"] == {
        "domain:ns": {"domain:hostObj": [{TEXT_KEY: "ns3.x"}]},
        "domain:contact": [{"@type": "billing", TEXT_KEY: "b"}],
    }
    assert update["domain:rem"] == {
        "domain:ns": {"domain:hostObj": [{TEXT_KEY: "ns1.x"}]},
        "domain:contact": [{"@type": "tech", TEXT_KEY: "t"}],
    }
    assert update["domain:chg"] == {"domain:registrant": {TEXT_KEY: "GK"}}


def test_domain_update_without_changes_has_no_add_or_rem() -> None:
    same = {"domain:contact": [{"@type": "admin", TEXT_KEY: "a"}]}
    update = DOMAIN.update_body("x.lol", same, same)["domain:update"]
    assert "domain:add" not in update and "domain:rem" not in update


def test_created_key_prefers_cre_data() -> None:
    response = parse_response(decode(epp_response(res_data=(
        '<resData><domain:creData xmlns:domain="urn:ietf:params:xml:ns:domain-1.0">'
        "<domain:name>bog.lol</domain:name></domain:creData></resData>"
    ))))
    assert DOMAIN.created_key({"domain:name": {TEXT_KEY: "typed.lol"}}, response) == "bog.lol"
    bare = parse_response(decode(epp_response()))
    assert DOMAIN.created_key({"domain:name": {TEXT_KEY: "typed.lol"}}, bare) == "typed.lol"


def test_contact_create_and_update_bodies() -> None:
    collected = {
        "contact:id": {TEXT_KEY: "pohl"},
        "contact:postalInfo": [{"@type": "int", "contact:name": {TEXT_KEY: "Chris Pohl"}}],
        "contact:email": {TEXT_KEY: "chris@bog.lol"},
        "contact:clID": {TEXT_KEY: "ignored"},
    }
    create = CONTACT.create_body(collected)["contact:create"]
    assert list(create) == ["@xmlns:contact", "contact:id", "contact:postalInfo", "contact:email"]
    update = CONTACT.update_body("pohl", {}, collected)["contact:update"]
    assert update["contact:id"] == {TEXT_KEY: "pohl"}
    assert set(update["contact:chg"]) == {"contact:postalInfo", "contact:email"}


def test_host_update_diffs_addresses_and_renames() -> None:
    before = {"host:name": {TEXT_KEY: "ns1.x"}, "host:addr": [{TEXT_KEY: "1.2.3.4"}]}
    after = {
        "host:name": {TEXT_KEY: "ns9.x"},
        "host:addr": [{TEXT_KEY: "1.2.3.4", "@ip": "v4"}, {TEXT_KEY: "::1", "@ip": "v6"}],
    }
    update = HOST.update_body("ns1.x", before, after)["host:update"]
    assert update["host:add"] == {"host:addr": [{TEXT_KEY: "::1", "@ip": "v6"}]}
    assert "host:rem" not in update
    assert update["host:chg"] == {"host:name": {TEXT_KEY: "ns9.x"}}
