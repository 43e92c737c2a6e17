"""Body encoding for requests and streamed decoding for responses.

JSON goes through the stdlib json module, XML through ElementTree. Decoded
values can be validated into a caller-supplied type with pydantic.

XML is mapped to plain Python values with these rules:
- The document becomes ``{root_tag: value}``.
- Namespace URIs are dropped from tag names.
- Attributes become ``@name`` keys; xmlns declarations are skipped.
- Repeated child tags (or tags named in ``force_list``) become lists.
- A text-only element becomes its stripped text; an empty one becomes None.
- Text next to attributes or children is kept under ``#text``.
"""

from __future__ import annotations

import codecs
import json
import xml.etree.ElementTree as ET
from typing import IO, Any, Mapping, Sequence
from urllib.parse import urlencode

from pydantic import BaseModel, TypeAdapter

JSON_MIME = "application/json; charset=utf-8"
XML_MIME = "application/xml; charset=utf-8"
FORM_MIME = "application/x-www-form-urlencoded; charset=utf-8"

_JSON_READ_SIZE = 64 * 1024
_JSON_WHITESPACE = " \t\n\r"


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


def encode_form(data: Mapping[str, str | Sequence[str]]) -> bytes:
    """URL-encode form fields, keys sorted, repeated values kept in order."""
    items: list[tuple[str, str]] = []
    for key in sorted(data):
        value = data[key]
        if isinstance(value, str):
            items.append((key, value))
        else:
            items.extend((key, v) for v in value)
    return urlencode(items).encode("ascii")


def encode_json(value: Any) -> bytes:
    """Serialize *value* as compact JSON. Pydantic models use their own dump."""
    if isinstance(value, BaseModel):
        return value.model_dump_json().encode("utf-8")
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def encode_xml(data: Mapping[str, Any]) -> bytes:
    """Serialize a single-root mapping to UTF-8 XML with a declaration.

    Nested mappings become child elements, lists become repeated siblings,
    None becomes an empty element and ``@name`` keys become attributes.

    Raises:
        ValueError: If *data* does not have exactly one top-level key.
    """
    if len(data) != 1:
        raise ValueError(
            f"XML body needs exactly one root element, got {len(data)} top-level keys"
        )
    (tag, value), = data.items()
    return ET.tostring(_build_element(tag, value), encoding="utf-8", xml_declaration=True)


def _build_element(tag: str, value: Any) -> ET.Element:
    element = ET.Element(tag)
    if isinstance(value, Mapping):
        for key, child in value.items():
            if key == "#text":
                element.text = _xml_text(child)
            elif key.startswith("@"):
                element.set(key[1:], _xml_text(child))
            elif isinstance(child, list):
                element.extend(_build_element(key, item) for item in child)
            else:
                element.append(_build_element(key, child))
    elif value is not None:
        element.text = _xml_text(value)
    return element


def _xml_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# ---------------------------------------------------------------------------
# Response bodies
# ---------------------------------------------------------------------------


def decode_json(source: IO[bytes], target: Any = None) -> Any:
    """Decode the first JSON value from a binary file object.

    The source is read in chunks only until one complete value has been
    parsed. Anything after that value is left unread.

    Args:
        source: Open binary file, typically a ResponseFile. UTF-8, with or
            without a byte order mark.
        target: Optional type to validate into (a pydantic model, a
            dataclass, ``list[Model]``, ...). None returns the plain value.

    Raises:
        json.JSONDecodeError: If the body does not start with a JSON value.
        pydantic.ValidationError: If the value does not fit *target*.
    """
    decoder = json.JSONDecoder()
    text_decoder = codecs.getincrementaldecoder("utf-8-sig")()
    buffer = ""
    while True:
        chunk = source.read(_JSON_READ_SIZE)
        eof = not chunk
        buffer += text_decoder.decode(chunk or b"", final=eof)
        start = len(buffer) - len(buffer.lstrip(_JSON_WHITESPACE))
        try:
            value, end = decoder.raw_decode(buffer, start)
        except json.JSONDecodeError:
            if eof:
                raise
            continue
        # A value ending exactly at the buffer end may be a number cut mid-chunk
        if end < len(buffer) or eof:
            return _validate(value, target)


def decode_xml(
    source: IO[bytes],
    target: Any = None,
    force_list: set[str] | None = None,
) -> Any:
    """Decode XML from a binary file object, parsing it incrementally.

    Args:
        source: Open binary file, typically a ResponseFile.
        target: Optional type to validate the decoded mapping into.
        force_list: Tag names always decoded as lists, even when only one
            such child exists.

    Raises:
        ET.ParseError: If the body is not well-formed XML.
        pydantic.ValidationError: If the value does not fit *target*.
    """
    root = ET.parse(source).getroot()
    value = {_local_name(root.tag): _element_value(root, force_list or set())}
    return _validate(value, target)


def _validate(value: Any, target: Any) -> Any:
    if target is None:
        return value
    if isinstance(target, type) and issubclass(target, BaseModel):
        return target.model_validate(value)
    return TypeAdapter(target).validate_python(value)


def _local_name(tag: str) -> str:
    """``{http://ns}Name`` -> ``Name``."""
    return tag.rpartition("}")[2]


def _element_value(element: ET.Element, force_list: set[str]) -> Any:
    value: dict[str, Any] = {
        f"@{_local_name(name)}": attr
        for name, attr in element.attrib.items()
        if not name.startswith("xmlns")
    }

    grouped: dict[str, list[Any]] = {}
    for child in element:
        grouped.setdefault(_local_name(child.tag), []).append(
            _element_value(child, force_list)
        )
    for tag, items in grouped.items():
        value[tag] = items if tag in force_list or len(items) > 1 else items[0]

    text = (element.text or "").strip()
    if not value:
        return text or None
    if text:
        value["#text"] = text
    return value
