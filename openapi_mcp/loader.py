"""Load an OpenAPI document and extract its operations.

Handles:
- JSON and YAML documents
- $ref resolution (local pointers only)
- allOf composition for object schemas
- Path-item level parameters shared by every operation under the path
- Swagger 2.0 "body" and "formData" parameters
- Operations without an operationId
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import yaml

from .errors import SchemaIntegrityError, SpecLoadError
from .models import (
    ApiInfo,
    MediaTypeDescriptor,
    OperationDescriptor,
    ParameterDescriptor,
    PropertySchema,
    RequestBodyDescriptor,
)
from .naming import operation_id_for

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"
JSON_MEDIA_TYPE = "application/json"


def load_spec(path: str | Path) -> dict[str, Any]:
    """Load an OpenAPI document from disk.

    ``.json`` files are read with the json module, anything else as YAML.
    """
    spec_file = Path(path)
    try:
        text = spec_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecLoadError(f"Cannot read {spec_file}: {exc}") from exc

    try:
        if spec_file.suffix.lower() == ".json":
            doc = json.loads(text)
        else:
            doc = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise SpecLoadError(f"Cannot parse {spec_file}: {exc}") from exc

    if not isinstance(doc, dict):
        raise SpecLoadError(f"{spec_file} does not contain an OpenAPI document")
    return doc


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the spec."""
    return spec.get("paths") or {}


def resolve_ref(spec: dict[str, Any], ref: str) -> Any:
    """Resolve a local $ref pointer such as ``#/components/schemas/Pet``."""
    if not ref.startswith("#/"):
        raise SchemaIntegrityError(f"Unsupported $ref {ref!r}")
    node: Any = spec
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        try:
            node = node[part]
        except (KeyError, IndexError, TypeError) as exc:
            raise SchemaIntegrityError(f"Unresolvable $ref {ref!r}") from exc
    return node


class OpenAPIParser:
    """Read-only view over a loaded OpenAPI (or Swagger 2.0) document."""

    def __init__(self, spec: dict[str, Any]):
        self.spec = spec

    @classmethod
    def from_path(cls, path: str | Path) -> OpenAPIParser:
        return cls(load_spec(path))

    def info(self) -> ApiInfo:
        info = self.spec.get("info") or {}
        return ApiInfo(
            title=str(info.get("title") or ""),
            version=str(info.get("version") or ""),
            description=info.get("description") or "",
        )

    def server_url(self) -> str | None:
        """Return the first declared server URL, if it is absolute."""
        servers = self.spec.get("servers") or []
        if servers and servers[0].get("url"):
            url = servers[0]["url"]
            parts = urlsplit(url)
            if not (parts.scheme and parts.netloc):
                # Relative to wherever the document was served from
                logger.warning("Ignoring relative server URL %r", url)
                return None
            return url.rstrip("/")

        # Swagger 2.0
        host = self.spec.get("host")
        if host:
            scheme = (self.spec.get("schemes") or ["https"])[0]
            base_path = self.spec.get("basePath", "")
            return f"{scheme}://{host}{base_path}".rstrip("/")
        return None

    def operations(self) -> list[OperationDescriptor]:
        """Return every operation in document order."""
        operations: list[OperationDescriptor] = []
        for path, path_item in get_paths(self.spec).items():
            path_item = self._deref(path_item)
            shared = path_item.get("parameters") or []
            for method, operation in path_item.items():
                if method not in HTTP_METHODS:
                    continue
                operations.append(self._parse_operation(method, path, operation, shared))
        logger.debug("Parsed %d operations", len(operations))
        return operations

    # -- internals ---------------------------------------------------------

    def _deref(self, node: Any) -> Any:
        """Follow $ref chains until reaching a concrete node."""
        seen: set[str] = set()
        while isinstance(node, dict) and "$ref" in node:
            ref = node["$ref"]
            if ref in seen:
                raise SchemaIntegrityError(f"Circular $ref {ref!r}")
            seen.add(ref)
            node = resolve_ref(self.spec, ref)
        return node

    def _normalize_schema(self, schema: Any) -> dict[str, Any]:
        """Resolve refs and allOf, and infer a type for composed schemas."""
        schema = self._deref(schema) or {}

        if "allOf" in schema:
            merged_props: dict[str, Any] = {}
            merged_required: list[str] = []
            for sub in schema["allOf"]:
                sub = self._normalize_schema(sub)
                merged_props.update(sub.get("properties") or {})
                merged_required.extend(sub.get("required") or [])
            rest = {k: v for k, v in schema.items() if k != "allOf"}
            schema = {
                "type": "object",
                **rest,
                "properties": {**merged_props, **(rest.get("properties") or {})},
                "required": [*merged_required, *(rest.get("required") or [])],
            }

        if "type" in schema:
            return schema

        for key in ("oneOf", "anyOf"):
            for sub in schema.get(key) or []:
                resolved = self._normalize_schema(sub)
                if "type" in resolved:
                    return {**schema, "type": resolved["type"]}

        if "properties" in schema:
            return {**schema, "type": "object"}
        if "items" in schema:
            return {**schema, "type": "array"}
        return schema

    def _merge_parameters(
        self, shared: list[Any], own: list[Any],
    ) -> list[dict[str, Any]]:
        """Merge path-level and operation-level parameters.

        Operation parameters override shared ones with the same name and location.
        """
        merged: dict[tuple[str, str], dict[str, Any]] = {}
        for raw in [*shared, *own]:
            param = self._deref(raw)
            merged[(param["name"], param.get("in", "query"))] = param
        return list(merged.values())

    def _parse_parameter(self, param: dict[str, Any]) -> ParameterDescriptor:
        if "schema" in param:
            schema = self._normalize_schema(param["schema"])
        elif "content" in param:
            media = next(iter(param["content"].values()), {})
            schema = self._normalize_schema(media.get("schema"))
        else:
            # Swagger 2.0 keeps type/format/enum on the parameter itself
            schema = {k: v for k, v in param.items() if k not in ("name", "in", "required")}

        prop = PropertySchema.from_dict(schema)
        description = param.get("description") or prop.description
        return ParameterDescriptor(
            name=param["name"],
            location=param.get("in", "query"),
            required=bool(param.get("required", False)),
            schema=prop,
            description=description,
        )

    def _media_type(self, schema: Any) -> MediaTypeDescriptor:
        schema = self._normalize_schema(schema)
        properties = {
            name: PropertySchema.from_dict(self._normalize_schema(prop))
            for name, prop in (schema.get("properties") or {}).items()
        }
        return MediaTypeDescriptor(
            properties=properties,
            required=list(schema.get("required") or []),
        )

    def _parse_request_body(self, body: Any) -> RequestBodyDescriptor | None:
        body = self._deref(body)
        if not body:
            return None
        content: dict[str, MediaTypeDescriptor] = {}
        for media_type, media in (body.get("content") or {}).items():
            if not media or media.get("schema") is None:
                continue
            content[media_type] = self._media_type(media["schema"])
        return RequestBodyDescriptor(content=content)

    def _parse_operation(
        self,
        method: str,
        path: str,
        operation: dict[str, Any],
        shared: list[Any],
    ) -> OperationDescriptor:
        parameters: list[ParameterDescriptor] = []
        body_schema: Any = None
        form_fields: list[dict[str, Any]] = []

        for param in self._merge_parameters(shared, operation.get("parameters") or []):
            location = param.get("in", "query")
            if location == "body":
                body_schema = param.get("schema")
            elif location == "formData":
                form_fields.append(param)
            else:
                parameters.append(self._parse_parameter(param))

        request_body = self._parse_request_body(operation.get("requestBody"))
        if request_body is None and body_schema is not None:
            request_body = RequestBodyDescriptor(
                content={JSON_MEDIA_TYPE: self._media_type(body_schema)},
            )
        if request_body is None and form_fields:
            fields = [self._parse_parameter(f) for f in form_fields]
            request_body = RequestBodyDescriptor(content={
                FORM_MEDIA_TYPE: MediaTypeDescriptor(
                    properties={f.name: f.schema for f in fields},
                    required=[f.name for f in fields if f.required],
                ),
            })

        return OperationDescriptor(
            operation_id=operation.get("operationId") or operation_id_for(method, path),
            method=method.upper(),
            path=path,
            summary=operation.get("summary") or "",
            description=operation.get("description") or "",
            parameters=parameters,
            request_body=request_body,
            tags=list(operation.get("tags") or []),
        )

