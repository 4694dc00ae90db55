"""Raw document -> CandidateConfig.

Accepts an XML tree, a mapping (YAML/JSON shaped like the XML), or raw text in
either serialization. This is the only module that touches untyped data;
everything it returns is a typed CandidateConfig with no referential checks.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from typing import Any, Literal

import yaml
from pydantic import ValidationError

from rolegate.rbac.errors import MalformedDocumentError
from rolegate.rbac.models import (
    AccessLevel,
    CandidateConfig,
    Category,
    ConnectionType,
    Feature,
    Metadata,
    Role,
    RoleFeatureGrant,
)

logger = logging.getLogger(__name__)

ROOT_TAG = "coffee-platform"

DocumentFormat = Literal["auto", "xml", "yaml"]

# Section tag -> tag of each entry inside it.
_SECTIONS: dict[str, str] = {
    "roles": "role",
    "feature-catalog": "feature",
    "access-levels": "access-level",
    "categories": "category",
    "connection-types": "connection-type",
}

_METADATA_FIELDS = ("name", "description", "version")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse(raw_document: ET.Element | Mapping[str, Any] | str) -> CandidateConfig:
    """Convert a raw hierarchical document into a CandidateConfig.

    Raises MalformedDocumentError if the document is unreadable or does not
    have the expected shape.
    """
    if isinstance(raw_document, str):
        return parse_text(raw_document)
    if isinstance(raw_document, ET.Element):
        tree = _tree_from_xml(raw_document)
    elif isinstance(raw_document, Mapping):
        tree = _tree_from_mapping(raw_document)
    else:
        raise MalformedDocumentError(
            f"Unsupported document type: {type(raw_document).__name__}"
        )
    return _build_candidate(tree)


def parse_text(text: str, fmt: DocumentFormat = "auto") -> CandidateConfig:
    """Tokenize raw text as XML or YAML, then parse it."""
    # A UTF-8 BOM survives decoding as U+FEFF, which str.strip() keeps.
    text = text.removeprefix("\ufeff")
    if not text or not text.strip():
        raise MalformedDocumentError("Empty document provided")

    if fmt == "auto":
        fmt = "xml" if text.lstrip().startswith("<") else "yaml"

    if fmt == "xml":
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            line, col = e.position
            raise MalformedDocumentError(
                f"XML parsing error: {e}", location=f"line {line}, column {col}"
            ) from e
        return parse(root)

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        location = f"line {mark.line + 1}, column {mark.column + 1}" if mark else None
        raise MalformedDocumentError(f"YAML parsing error: {e}", location=location) from e
    if not isinstance(data, Mapping):
        raise MalformedDocumentError(
            f"Invalid document structure: expected a mapping, got {type(data).__name__}"
        )
    return parse(data)


# ---------------------------------------------------------------------------
# Normalization: XML / mapping -> plain dict tree
# ---------------------------------------------------------------------------


def _tree_from_xml(root: ET.Element) -> dict[str, Any]:
    if root.tag != ROOT_TAG:
        raise MalformedDocumentError(
            f"Invalid document structure: root element is <{root.tag}>, expected <{ROOT_TAG}>"
        )

    metadata_el = root.find("metadata")
    if metadata_el is None:
        raise MalformedDocumentError("Missing required section: metadata", location=ROOT_TAG)
    tree: dict[str, Any] = {"metadata": _xml_fields(metadata_el)}

    for section, entry_tag in _SECTIONS.items():
        section_el = root.find(section)
        if section_el is None:
            raise MalformedDocumentError(f"Missing required section: {section}", location=ROOT_TAG)
        entries = []
        for i, entry in enumerate(_xml_children(section_el, entry_tag, section)):
            fields = _xml_fields(entry)
            if section == "roles":
                features_el = entry.find("features")
                where = f"{section}/{entry_tag}[{i}]/features"
                fields["features"] = (
                    [_xml_fields(f) for f in _xml_children(features_el, "feature", where)]
                    if features_el is not None
                    else []
                )
            entries.append(fields)
        tree[section] = entries
    return tree


def _xml_children(parent: ET.Element, entry_tag: str, where: str) -> list[ET.Element]:
    """Children of a list element; anything not tagged *entry_tag* is rejected."""
    # Comments and processing instructions have a callable tag.
    children = [child for child in parent if isinstance(child.tag, str)]
    for i, child in enumerate(children):
        if child.tag != entry_tag:
            raise MalformedDocumentError(
                f"Unexpected element <{child.tag}>, expected <{entry_tag}>",
                location=f"{where}[{i}]",
            )
    return children


def _xml_fields(el: ET.Element) -> dict[str, str]:
    """Attributes plus text of leaf children (some files put name/description in children)."""
    fields = {
        child.tag: (child.text or "").strip()
        for child in el
        if len(child) == 0 and child.tag != "features"
    }
    fields.update(el.attrib)
    return fields


def _tree_from_mapping(doc: Mapping[str, Any]) -> dict[str, Any]:
    platform = doc.get(ROOT_TAG)
    if not isinstance(platform, Mapping):
        raise MalformedDocumentError(
            f"Invalid document structure: missing '{ROOT_TAG}' root mapping"
        )

    metadata = platform.get("metadata")
    if not isinstance(metadata, Mapping):
        raise MalformedDocumentError("Missing required section: metadata", location=ROOT_TAG)
    tree: dict[str, Any] = {"metadata": _stringify(metadata)}

    for section, entry_tag in _SECTIONS.items():
        if section not in platform:
            raise MalformedDocumentError(f"Missing required section: {section}", location=ROOT_TAG)
        entries = []
        for i, entry in enumerate(_entries(platform[section], entry_tag, section)):
            if not isinstance(entry, Mapping):
                raise MalformedDocumentError(
                    f"Expected a mapping for {entry_tag}",
                    location=f"{section}/{entry_tag}[{i}]",
                )
            fields = _stringify(entry)
            if section == "roles":
                where = f"{section}/{entry_tag}[{i}]/features"
                grants = _entries(entry.get("features"), "feature", where)
                for j, grant in enumerate(grants):
                    if not isinstance(grant, Mapping):
                        raise MalformedDocumentError(
                            "Expected a mapping for feature", location=f"{where}/feature[{j}]"
                        )
                fields["features"] = [_stringify(g) for g in grants]
            entries.append(fields)
        tree[section] = entries
    return tree


def _entries(value: Any, entry_tag: str, where: str) -> list[Any]:
    """Accept either a bare list or an xml2js-style ``{entry_tag: [...]}`` wrapper."""
    if value is None:
        return []
    if isinstance(value, Mapping):
        unexpected = sorted(str(k) for k in value if k != entry_tag)
        if unexpected:
            raise MalformedDocumentError(
                f"Unexpected key(s) {', '.join(unexpected)}, expected '{entry_tag}'",
                location=where,
            )
        value = value.get(entry_tag) or []
    if not isinstance(value, list):
        raise MalformedDocumentError(f"Expected a list of {entry_tag} entries", location=where)
    return value


def _stringify(m: Mapping[str, Any]) -> dict[str, Any]:
    # YAML turns `version: 1.0` into a float; ids like `1` into ints.
    return {
        str(k): (v if isinstance(v, (list, Mapping)) or v is None else str(v))
        for k, v in m.items()
    }


# ---------------------------------------------------------------------------
# Typed construction
# ---------------------------------------------------------------------------


def _required(fields: Mapping[str, Any], key: str, location: str) -> str:
    value = fields.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MalformedDocumentError(f"Missing required attribute '{key}'", location=location)
    return value


def _optional(fields: Mapping[str, Any], key: str) -> str | None:
    value = fields.get(key)
    return value or None


def _build_candidate(tree: dict[str, Any]) -> CandidateConfig:
    try:
        meta = tree["metadata"]
        metadata = Metadata(
            **{k: _required(meta, k, f"metadata/{k}") for k in _METADATA_FIELDS}
        )

        roles = []
        for i, r in enumerate(tree["roles"]):
            loc = f"roles/role[{i}]"
            grants = tuple(
                RoleFeatureGrant(
                    feature_id=_required(g, "id", f"{loc}/features/feature[{j}]@id"),
                    access_level=_required(
                        g, "access-level", f"{loc}/features/feature[{j}]@access-level"
                    ),
                    name=_optional(g, "name"),
                    description=_optional(g, "description"),
                )
                for j, g in enumerate(r["features"])
            )
            roles.append(
                Role(
                    id=_required(r, "id", f"{loc}@id"),
                    name=_required(r, "name", f"{loc}@name"),
                    connection_type=_required(r, "connection-type", f"{loc}@connection-type"),
                    features=grants,
                )
            )

        features = [
            Feature(
                id=_required(f, "id", f"feature-catalog/feature[{i}]@id"),
                name=_required(f, "name", f"feature-catalog/feature[{i}]@name"),
                category=_required(f, "category", f"feature-catalog/feature[{i}]@category"),
                description=_optional(f, "description"),
            )
            for i, f in enumerate(tree["feature-catalog"])
        ]

        access_levels = [
            AccessLevel(**_described(a, f"access-levels/access-level[{i}]"))
            for i, a in enumerate(tree["access-levels"])
        ]
        categories = [
            Category(**_described(c, f"categories/category[{i}]"))
            for i, c in enumerate(tree["categories"])
        ]
        connection_types = [
            ConnectionType(**_described(c, f"connection-types/connection-type[{i}]"))
            for i, c in enumerate(tree["connection-types"])
        ]
    except ValidationError as e:
        raise MalformedDocumentError(f"Invalid entity: {e}") from e

    candidate = CandidateConfig(
        metadata=metadata,
        roles=tuple(roles),
        features=tuple(features),
        access_levels=tuple(access_levels),
        categories=tuple(categories),
        connection_types=tuple(connection_types),
    )
    logger.debug(
        "Parsed %d roles, %d features, %d access levels",
        len(candidate.roles),
        len(candidate.features),
        len(candidate.access_levels),
    )
    return candidate


def _described(fields: Mapping[str, Any], location: str) -> dict[str, str]:
    return {
        "id": _required(fields, "id", f"{location}@id"),
        "name": _required(fields, "name", f"{location}@name"),
        "description": fields.get("description") or "",
    }
