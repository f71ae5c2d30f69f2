from __future__ import annotations

import json
from typing import Any
import collections.abc

import yaml
import xmltodict

from apidsl.apidsl_datatypes import (
    APIExpr, ArrayOf, AttributeExpr, EndpointExpr, MetadataExpr, Object, Primitive,
    ResultTypeExpr, RootExpr, ServiceExpr, UserTypeExpr,
)


# --------------------------
# Helpers
# --------------------------

def _type_to_builtin(t: Any, entries: bool = False) -> Any:
    if t is None:
        return None
    if isinstance(t, Primitive):
        return t.name
    if isinstance(t, ArrayOf):
        return {"array": _type_to_builtin(t.element, entries)}
    if isinstance(t, UserTypeExpr):
        # Reference by name; the definition is listed under "types".
        return t.type_name
    if isinstance(t, Object):
        return {"object": {name: _attribute_to_builtin(att, entries) for name, att in t.items()}}
    return repr(t)


def _metadata_to_builtin(metadata: MetadataExpr | None, entries: bool = False) -> dict | None:
    if metadata is None:
        return None
    if entries:
        # Keys such as "struct:tag:json" are not valid element names, and a key
        # with no values must still show up.
        return {"entry": [{"@key": k, "value": list(v)} for k, v in metadata.items()]}
    return {k: list(v) for k, v in metadata.items()}


def _attribute_to_builtin(att: AttributeExpr, entries: bool = False) -> dict:
    out: dict = {"type": _type_to_builtin(att.type, entries)}
    if att.description:
        out["description"] = att.description
    md = _metadata_to_builtin(att.metadata, entries)
    if md is not None:
        out["metadata"] = md
    return out


def _drop_none(d: dict) -> dict:
    return {k: v for k, v in d.items() if v is not None}


def to_builtin(obj: Any, *, metadata_entries: bool = False) -> Any:
    """Converts a design expression into plain dicts, lists and strings.

    Metadata value lists are copied, so the result can be modified freely.
    With metadata_entries, each metadata store becomes {"entry": [{"@key": k,
    "value": [...]}, ...]} instead of a key to values mapping.
    """
    e = metadata_entries
    match obj:
        case RootExpr():
            return _drop_none({
                "api": to_builtin(obj.api, metadata_entries=e) if obj.api is not None else None,
                "types": [to_builtin(t, metadata_entries=e) for t in obj.types],
                "services": [to_builtin(s, metadata_entries=e) for s in obj.services],
            })
        case APIExpr():
            return _drop_none({
                "name": obj.name,
                "title": obj.title,
                "description": obj.description,
                "metadata": _metadata_to_builtin(obj.metadata, e),
            })
        case ServiceExpr():
            return _drop_none({
                "name": obj.name,
                "description": obj.description,
                "endpoints": [to_builtin(ep, metadata_entries=e) for ep in obj.endpoints],
            })
        case EndpointExpr():
            return _drop_none({
                "name": obj.name,
                "description": obj.description,
                "payload": _attribute_to_builtin(obj.payload, e) if obj.payload is not None else None,
                "result": _attribute_to_builtin(obj.result, e) if obj.result is not None else None,
                "metadata": _metadata_to_builtin(obj.metadata, e),
            })
        case ResultTypeExpr():
            return {"name": obj.type_name, "identifier": obj.identifier,
                    **_attribute_to_builtin(obj.attribute(), e)}
        case UserTypeExpr():
            return {"name": obj.type_name, **_attribute_to_builtin(obj.attribute(), e)}
        case AttributeExpr():
            return {"name": obj.name, **_attribute_to_builtin(obj, e)}
        case MetadataExpr():
            return _metadata_to_builtin(obj, e)
        case list() | tuple():
            return [to_builtin(x, metadata_entries=e) for x in obj]
        case collections.abc.Mapping():
            return {k: to_builtin(v, metadata_entries=e) for k, v in obj.items()}
        case _:
            return obj


# --------------------------
# Public API
# --------------------------

def serialize(value: Any,
              *,
              fmt: str,
              pretty: bool = True,
              xml_root: str = "design") -> str:
    """
    Convert a design (or any expression) into a textual representation.
    - fmt: 'json' | 'yaml' | 'xml'
    - For XML the value is always wrapped under {xml_root: value}, and
      metadata is written as <entry key="..."> elements holding <value> items
    """
    f = (fmt or '').lower()
    if f == 'json':
        return json.dumps(to_builtin(value), ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(to_builtin(value), sort_keys=False)
    if f == 'xml':
        return xmltodict.unparse({xml_root: to_builtin(value, metadata_entries=True)}, pretty=pretty)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


__all__ = [
    "serialize",
    "to_builtin",
]
