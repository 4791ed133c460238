"""XscpData document encoding and decoding.

Nodes reference styles by class *name* inside the pipeline. Encoding first
builds the name -> id table from the style list, then rewrites every node's
class list through it; decoding runs the same two passes in reverse.
"""

from __future__ import annotations

import json
from typing import Any

from flowbridge.errors import ParseError
from flowbridge.model.graph import GraphNode, GraphStyle, LinkData, NodeGraph, NodeKind

__all__ = ["DOCUMENT_TYPE", "to_document", "from_document", "dumps", "loads"]

DOCUMENT_TYPE = "@webflow/XscpData"

_KINDS = {kind.value: kind for kind in NodeKind}


def _embed_data(html: str) -> dict[str, Any]:
    return {
        "embed": {
            "type": "custom",
            "meta": {
                "html": html,
                "div": True,
                "iframe": False,
                "script": False,
                "compilable": False,
            },
        },
        "insideRTE": False,
    }


def _encode_node(node: GraphNode, style_ids: dict[str, str]) -> dict[str, Any]:
    if node.is_text:
        return {"_id": node.id, "text": True, "v": node.text or ""}
    if node.is_embed:
        return {
            "_id": node.id,
            "type": NodeKind.HTML_EMBED.value,
            "tag": "div",
            "classes": [],
            "children": [],
            "v": node.embed_html or "",
            "data": _embed_data(node.embed_html or ""),
        }
    xattr = [{"name": name, "value": value} for name, value in node.attributes]
    if node.link is not None:
        link: dict[str, Any] = {"mode": node.link.mode, "url": node.link.url}
        if node.link.target:
            link["target"] = node.link.target
        data: dict[str, Any] = {"link": link, "xattr": xattr}
    else:
        data = {"tag": node.tag, "text": False, "xattr": xattr}
    return {
        "_id": node.id,
        "type": node.kind.value,
        "tag": node.tag,
        "classes": [style_ids.get(name, name) for name in node.classes],
        "children": list(node.children),
        "data": data,
    }


def _encode_style(style: GraphStyle) -> dict[str, Any]:
    return {
        "_id": style.id,
        "fake": False,
        "type": "class",
        "name": style.name,
        "namespace": "",
        "comb": "",
        "styleLess": style.base,
        "variants": {key: {"styleLess": value} for key, value in style.variants.items()},
        "children": [],
    }


def to_document(graph: NodeGraph) -> dict[str, Any]:
    """Encode *graph* as an XscpData clipboard document."""
    style_ids: dict[str, str] = {}
    for style in graph.styles:
        style_ids.setdefault(style.name, style.id)
    return {
        "type": DOCUMENT_TYPE,
        "payload": {
            "nodes": [_encode_node(node, style_ids) for node in graph.nodes],
            "styles": [_encode_style(style) for style in graph.styles],
            "assets": [],
            "ix1": [],
            "ix2": {"interactions": [], "events": [], "actionLists": []},
        },
        "meta": {
            "unlinkedSymbolCount": 0,
            "droppedLinks": 0,
            "dynBindRemovedCount": 0,
            "dynListBindRemovedCount": 0,
            "paginationRemovedCount": 0,
        },
    }


def _field(raw: dict[str, Any], key: str, expected: type, default: Any, where: str) -> Any:
    """Return ``raw[key]``, or *default* when absent; reject the wrong type."""
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, expected):
        raise ParseError(f"{where}: '{key}' must be a {expected.__name__}, not {type(value).__name__}")
    return value


def _decode_style(raw: dict[str, Any]) -> GraphStyle:
    where = f"Style '{raw.get('_id', '')}'"
    variants = {}
    for key, value in _field(raw, "variants", dict, {}, where).items():
        variants[key] = str(value.get("styleLess", "")) if isinstance(value, dict) else str(value)
    return GraphStyle(
        id=str(raw.get("_id", "")),
        name=str(raw.get("name", "")),
        base=str(raw.get("styleLess", "")),
        variants=variants,
    )


def _decode_node(raw: dict[str, Any], style_names: dict[str, str]) -> GraphNode:
    node_id = str(raw.get("_id", ""))
    if raw.get("text") is True:
        return GraphNode(id=node_id, kind=NodeKind.TEXT, tag="", text=str(raw.get("v", "")))
    where = f"Node '{node_id}'"
    kind = _KINDS.get(str(raw.get("type", "")), NodeKind.BLOCK)
    data = _field(raw, "data", dict, {}, where)
    children = tuple(str(c) for c in _field(raw, "children", list, [], where))
    if kind is NodeKind.HTML_EMBED:
        embed = _field(data, "embed", dict, {}, where)
        meta = _field(embed, "meta", dict, {}, where)
        html = meta.get("html", raw.get("v", ""))
        return GraphNode(
            id=node_id,
            kind=kind,
            tag="div",
            children=children,
            embed_html=str(html),
        )
    link = None
    if isinstance(data.get("link"), dict):
        raw_link = data["link"]
        link = LinkData(
            url=str(raw_link.get("url", "#")),
            target=raw_link.get("target"),
            mode=str(raw_link.get("mode", "external")),
        )
    attributes = tuple(
        (str(a.get("name", "")), str(a.get("value", "")))
        for a in _field(data, "xattr", list, [], where)
        if isinstance(a, dict)
    )
    classes = _field(raw, "classes", list, [], where)
    return GraphNode(
        id=node_id,
        kind=kind,
        tag=str(raw.get("tag") or data.get("tag") or "div"),
        classes=tuple(style_names.get(str(ref), str(ref)) for ref in classes),
        children=children,
        link=link,
        attributes=attributes,
    )


def from_document(document: dict[str, Any]) -> NodeGraph:
    """Decode an XscpData document into a :class:`NodeGraph`.

    Class references that match no style id are kept verbatim so the
    validator can report them. Fields of the wrong JSON type raise
    :class:`ParseError`; a missing field takes its empty default.
    """
    if not isinstance(document, dict) or document.get("type") != DOCUMENT_TYPE:
        raise ParseError(f"Not a {DOCUMENT_TYPE} document")
    payload = document.get("payload")
    if not isinstance(payload, dict):
        raise ParseError("Document has no payload")
    raw_styles = _field(payload, "styles", list, [], "Payload")
    raw_nodes = _field(payload, "nodes", list, [], "Payload")
    styles = [_decode_style(s) for s in raw_styles if isinstance(s, dict)]
    style_names: dict[str, str] = {}
    for style in styles:
        style_names.setdefault(style.id, style.name)
    nodes = [_decode_node(n, style_names) for n in raw_nodes if isinstance(n, dict)]
    return NodeGraph(nodes=nodes, styles=styles)


def dumps(graph: NodeGraph, indent: int | None = 2) -> str:
    return json.dumps(to_document(graph), indent=indent, ensure_ascii=False)


def loads(text: str) -> NodeGraph:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON: {exc.msg}", exc.lineno, exc.colno) from exc
    return from_document(document)
