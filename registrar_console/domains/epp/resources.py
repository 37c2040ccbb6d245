"""
Registry object kinds shown by the console: domains, contacts and hosts.

Each kind knows its form fields and how to turn collected field trees into
info/create/update command bodies. Bodies follow the element order of the
EPP object mappings (RFC 5731-5733).
"""

from __future__ import annotations

from typing import Any, Callable

from registrar_console.domains.epp.protocol import CONTACT_NS, DOMAIN_NS, HOST_NS, EppResponse
from registrar_console.domains.errors import MalformedMarkup
from registrar_console.domains.forms.form_binder import BindingSpec, FieldSpec, RepeatedGroup, get_entry
from registrar_console.domains.markup.tree_codec import TEXT_KEY, TreeValue, as_list, text_of

MAX_NAMESERVERS = 13
MAX_POSTAL_INFOS = 2  # one internationalized, one localized


def _text(value: str) -> TreeValue:
    return {TEXT_KEY: value}


def _pick(tree: TreeValue, keys: tuple[str, ...]) -> TreeValue:
    """Copy the present entries of tree for keys, in the order of keys."""
    return {k: tree[k] for k in keys if k in tree}


def _diff(
    before: list[TreeValue],
    after: list[TreeValue],
    key: Callable[[TreeValue], Any],
) -> tuple[list[TreeValue], list[TreeValue]]:
    """Return (added, removed) entries comparing two repeated groups by key."""
    before_keys = {key(e) for e in before}
    after_keys = {key(e) for e in after}
    added = [e for e in after if key(e) not in before_keys]
    removed = [e for e in before if key(e) not in after_keys]
    return added, removed


def _text_key(entry: TreeValue) -> str:
    return entry.get(TEXT_KEY, "")


def _contact_key(entry: TreeValue) -> tuple[str, str]:
    return entry.get("@type", ""), entry.get(TEXT_KEY, "")


def _addr_key(entry: TreeValue) -> tuple[str, str]:
    # ip defaults to v4 when the attribute is absent
    return entry.get("@ip", "v4"), entry.get(TEXT_KEY, "")


class ResourceKind:
    """Base class for an EPP object type bound to a console page."""

    name = ""
    prefix = ""
    namespace = ""
    key_element = ""
    specs: tuple[BindingSpec, ...] = ()

    def _el(self, local: str) -> str:
        return f"{self.prefix}:{local}"

    def _command(self, verb: str, content: TreeValue) -> TreeValue:
        return {self._el(verb): {f"@xmlns:{self.prefix}": self.namespace, **content}}

    def key_of(self, tree: TreeValue) -> str:
        return text_of(tree.get(self.key_element))

    def info_body(self, key: str) -> TreeValue:
        return self._command("info", {self.key_element: _text(key)})

    def info_tree(self, response: EppResponse) -> TreeValue:
        """Pull ``<prefix>:infData`` out of an info response."""
        inf = (response.res_data or {}).get(self._el("infData"))
        if not isinstance(inf, dict):
            raise MalformedMarkup(f"Info response carries no {self._el('infData')}")
        return inf

    def created_key(self, collected: TreeValue, response: EppResponse) -> str:
        """Key of a freshly created object: from creData when present, else from the form."""
        cre = (response.res_data or {}).get(self._el("creData"))
        if isinstance(cre, dict) and self.key_of(cre):
            return self.key_of(cre)
        return self.key_of(collected)

    def create_body(self, collected: TreeValue) -> TreeValue:
        raise NotImplementedError

    def update_body(self, key: str, before: TreeValue, after: TreeValue) -> TreeValue:
        raise NotImplementedError


class DomainResource(ResourceKind):
    name = "domain"
    prefix = "domain"
    namespace = DOMAIN_NS
    key_element = "domain:name"
    specs = (
        FieldSpec("domain:name"),
        FieldSpec("domain:roid"),
        RepeatedGroup("domain:status", ("@s",)),
        FieldSpec("domain:period"),
        FieldSpec("domain:registrant"),
        RepeatedGroup("domain:contact", ("value", "@type")),
        RepeatedGroup("domain:ns.domain:hostObj", max_rows=MAX_NAMESERVERS),
        FieldSpec("domain:clID"),
        FieldSpec("domain:crID"),
        FieldSpec("domain:crDate"),
        FieldSpec("domain:upDate"),
        FieldSpec("domain:exDate"),
        FieldSpec("domain:authInfo.domain:pw"),
    )

    def info_body(self, key: str) -> TreeValue:
        return self._command("info", {"domain:name": {"@hosts": "all", TEXT_KEY: key}})

    def _nameservers(self, tree: TreeValue) -> list[TreeValue]:
        return as_list(get_entry(tree, "domain:ns.domain:hostObj"))

    def create_body(self, collected: TreeValue) -> TreeValue:
        content: TreeValue = {"domain:name": _text(self.key_of(collected))}
        period = text_of(collected.get("domain:period"))
        if period:
            content["domain:period"] = {"@unit": "y", TEXT_KEY: period}
        hosts = self._nameservers(collected)
        if hosts:
            content["domain:ns"] = {"domain:hostObj": hosts}
        content.update(_pick(collected, ("domain:registrant", "domain:contact", "domain:authInfo")))
        return self._command("create", content)

    def update_body(self, key: str, before: TreeValue, after: TreeValue) -> TreeValue:
        added_c, removed_c = _diff(
            as_list(before.get("domain:contact")), as_list(after.get("domain:contact")), _contact_key
        )
        added_ns, removed_ns = _diff(self._nameservers(before), self._nameservers(after), _text_key)

        content: TreeValue = {"domain:name": _text(key)}
        for section, hosts, contacts in (("domain:add", added_ns, added_c), ("domain:rem", removed_ns, removed_c)):
            part: TreeValue = {}
            if hosts:
                part["domain:ns"] = {"domain:hostObj": hosts}
            if contacts:
                part["domain:contact"] = contacts
            if part:
                content[section] = part
        chg = _pick(after, ("domain:registrant", "domain:authInfo"))
        if chg:
            content["domain:chg"] = chg
        return self._command("update", content)


class ContactResource(ResourceKind):
    name = "contact"
    prefix = "contact"
    namespace = CONTACT_NS
    key_element = "contact:id"
    specs = (
        FieldSpec("contact:id"),
        FieldSpec("contact:roid"),
        RepeatedGroup("contact:status", ("@s",)),
        RepeatedGroup(
            "contact:postalInfo",
            (
                "@type",
                "contact:name",
                "contact:org",
                "contact:addr.contact:street[0]",
                "contact:addr.contact:street[1]",
                "contact:addr.contact:street[2]",
                "contact:addr.contact:city",
                "contact:addr.contact:sp",
                "contact:addr.contact:pc",
                "contact:addr.contact:cc",
            ),
            max_rows=MAX_POSTAL_INFOS,
        ),
        FieldSpec("contact:voice"),
        FieldSpec("contact:voice.@x"),
        FieldSpec("contact:fax"),
        FieldSpec("contact:fax.@x"),
        FieldSpec("contact:email"),
        FieldSpec("contact:clID"),
        FieldSpec("contact:crID"),
        FieldSpec("contact:crDate"),
        FieldSpec("contact:upID"),
        FieldSpec("contact:upDate"),
        FieldSpec("contact:authInfo.contact:pw"),
    )

    _EDITABLE = ("contact:postalInfo", "contact:voice", "contact:fax", "contact:email", "contact:authInfo")

    def create_body(self, collected: TreeValue) -> TreeValue:
        content: TreeValue = {"contact:id": _text(self.key_of(collected))}
        content.update(_pick(collected, self._EDITABLE))
        return self._command("create", content)

    def update_body(self, key: str, before: TreeValue, after: TreeValue) -> TreeValue:
        content: TreeValue = {"contact:id": _text(key)}
        chg = _pick(after, self._EDITABLE)
        if chg:
            content["contact:chg"] = chg
        return self._command("update", content)


class HostResource(ResourceKind):
    name = "host"
    prefix = "host"
    namespace = HOST_NS
    key_element = "host:name"
    specs = (
        FieldSpec("host:name"),
        FieldSpec("host:roid"),
        RepeatedGroup("host:status", ("@s",)),
        RepeatedGroup("host:addr", ("value", "@ip")),
        FieldSpec("host:clID"),
        FieldSpec("host:crID"),
        FieldSpec("host:crDate"),
        FieldSpec("host:upDate"),
    )

    def create_body(self, collected: TreeValue) -> TreeValue:
        content: TreeValue = {"host:name": _text(self.key_of(collected))}
        content.update(_pick(collected, ("host:addr",)))
        return self._command("create", content)

    def update_body(self, key: str, before: TreeValue, after: TreeValue) -> TreeValue:
        added, removed = _diff(as_list(before.get("host:addr")), as_list(after.get("host:addr")), _addr_key)
        content: TreeValue = {"host:name": _text(key)}
        if added:
            content["host:add"] = {"host:addr": added}
        if removed:
            content["host:rem"] = {"host:addr": removed}
        new_name = self.key_of(after)
        if new_name and new_name != key:
            content["host:chg"] = {"host:name": _text(new_name)}
        return self._command("update", content)


DOMAIN = DomainResource()
CONTACT = ContactResource()
HOST = HostResource()

RESOURCES: dict[str, ResourceKind] = {r.name: r for r in (DOMAIN, CONTACT, HOST)}
