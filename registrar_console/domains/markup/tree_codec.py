"""
Bidirectional codec between EPP markup documents and the generic tree value.

A tree value is a plain dict describing one element:

- text content under the reserved key ``"keyValue"``
- attributes under ``"@name"`` keys (namespace declarations included)
- child elements under their qualified name, as one dict, or as a list of
  dicts when the name occurs more than once among siblings

Decoding a document yields ``{root_qualified_name: tree_value}``. Mixed
content (text next to child elements) is not representable and is rejected.
"""

from __future__ import annotations

from typing import Any

from lxml import etree

from registrar_console.domains.errors import MalformedMarkup

TEXT_KEY = "keyValue"
XML_NS = "http://www.w3.org/XML/1998/namespace"

TreeValue = dict[str, Any]

_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    remove_blank_text=False,
    huge_tree=False,
)
# Text input is already decoded; its encoding declaration must not be trusted.
_TEXT_PARSER = etree.XMLParser(
    encoding="utf-8",
    resolve_entities=False,
    no_network=True,
    remove_blank_text=False,
    huge_tree=False,
)


def as_list(value: Any) -> list[TreeValue]:
    """Normalize a child entry (absent, single, or repeated) to a list of tree values."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def text_of(value: Any, default: str = "") -> str:
    """Return the text of a single child entry, or default when absent."""
    if isinstance(value, dict):
        text = value.get(TEXT_KEY)
        if isinstance(text, str):
            return text
    return default


# --- Decoding ---

def _qualified_name(el: etree._Element) -> str:
    local = etree.QName(el).localname
    return f"{el.prefix}:{local}" if el.prefix else local


def _declared_namespaces(el: etree._Element) -> dict[str | None, str]:
    parent = el.getparent()
    inherited = parent.nsmap if parent is not None else {}
    return {p: uri for p, uri in el.nsmap.items() if inherited.get(p) != uri}


def _attribute_key(el: etree._Element, name: str) -> str:
    if not name.startswith("{"):
        return f"@{name}"
    qn = etree.QName(name)
    if qn.namespace == XML_NS:
        return f"@xml:{qn.localname}"
    for prefix, uri in el.nsmap.items():
        if prefix and uri == qn.namespace:
            return f"@{prefix}:{qn.localname}"
    return f"@{qn.localname}"


def _element_to_tree(el: etree._Element) -> TreeValue:
    out: TreeValue = {}
    for prefix, uri in _declared_namespaces(el).items():
        out["@xmlns" if prefix is None else f"@xmlns:{prefix}"] = uri
    for name, value in el.attrib.items():
        out[_attribute_key(el, name)] = value

    texts: list[str] = []
    children: list[etree._Element] = []
    if el.text and el.text.strip():
        texts.append(el.text.strip())
    for child in el:
        # Comments, processing instructions and unresolved entities carry no data.
        if isinstance(child.tag, str):
            children.append(child)
        if child.tail and child.tail.strip():
            texts.append(child.tail.strip())

    if texts and children:
        after = texts[1] if len(texts) > 1 else f"<{_qualified_name(children[0])}>"
        raise MalformedMarkup.interspersed(texts[0], after)
    if texts:
        # Text split only by comments still forms a single text value.
        raw = (el.text or "") + "".join(child.tail or "" for child in el)
        out[TEXT_KEY] = raw.strip()
        return out

    for child in children:
        name = _qualified_name(child)
        value = _element_to_tree(child)
        if name not in out:
            out[name] = value
        elif isinstance(out[name], list):
            out[name].append(value)
        else:
            out[name] = [out[name], value]
    return out


def decode(markup: str | bytes) -> TreeValue:
    """
    Decode a markup document into ``{root_name: tree_value}``.

    Raises:
        MalformedMarkup: If the document cannot be parsed or contains
            text interspersed with child elements.
    """
    if isinstance(markup, str):
        data, parser = markup.encode("utf-8"), _TEXT_PARSER
    else:
        data, parser = markup, _PARSER
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as e:
        raise MalformedMarkup(f"Unparsable XML: {e}") from e
    return {_qualified_name(root): _element_to_tree(root)}


# --- Encoding ---

def _resolve(name: str, scope: dict[str | None, str], attribute: bool = False) -> str:
    prefix, sep, local = name.partition(":")
    if not sep:
        if attribute or scope.get(None) is None:
            return name
        return f"{{{scope[None]}}}{name}"
    if prefix == "xml":
        return f"{{{XML_NS}}}{local}"
    uri = scope.get(prefix)
    if not uri:
        raise MalformedMarkup(f'Undeclared namespace prefix "{prefix}" in "{name}"')
    return f"{{{uri}}}{local}"


def _build_element(
    name: str,
    value: Any,
    parent: etree._Element | None,
    scope: dict[str | None, str],
) -> etree._Element:
    if not isinstance(value, dict):
        raise MalformedMarkup(f'Element "{name}" must be a tree value, got {type(value).__name__}')

    declared: dict[str | None, str] = {}
    attributes: list[tuple[str, str]] = []
    children: list[tuple[str, Any]] = []
    text: str | None = None
    for key, item in value.items():
        if key.startswith("@"):
            if not isinstance(item, str):
                raise MalformedMarkup(f'Attribute "{key}" on "{name}" must be a string')
            attr = key[1:]
            if attr == "xmlns":
                declared[None] = item
            elif attr.startswith("xmlns:"):
                declared[attr[len("xmlns:"):]] = item
            else:
                attributes.append((attr, item))
        elif key == TEXT_KEY and isinstance(item, str):
            text = item
        else:
            children.append((key, item))
    if text is not None and children:
        raise MalformedMarkup(f'Element "{name}" cannot carry both text and child elements')

    inner = {**scope, **declared}
    try:
        tag = _resolve(name, inner)
        nsmap = declared or None
        if parent is None:
            el = etree.Element(tag, nsmap=nsmap)
        else:
            el = etree.SubElement(parent, tag, nsmap=nsmap)
        for attr, item in attributes:
            el.set(_resolve(attr, inner, attribute=True), item)
    except ValueError as e:
        raise MalformedMarkup(f'Cannot encode element "{name}": {e}') from e

    if text is not None:
        el.text = text
    for child_name, child in children:
        if isinstance(child, list):
            for entry in child:
                _build_element(child_name, entry, el, inner)
        else:
            _build_element(child_name, child, el, inner)
    return el


def encode(tree: TreeValue) -> str:
    """
    Encode ``{root_name: tree_value}`` into a markup document.

    Raises:
        MalformedMarkup: If the tree has no single root, mixes text with
            children, or uses an undeclared namespace prefix.
    """
    if not isinstance(tree, dict) or len(tree) != 1:
        raise MalformedMarkup("A document needs exactly one root element")
    (name, value), = tree.items()
    root = _build_element(name, value, None, {})
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8").decode("utf-8")
