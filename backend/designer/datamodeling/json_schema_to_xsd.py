"""
JSON Schema to XSD conversion.

Walks a JSON Schema document and emits the equivalent XML Schema. Named
definitions become named XSD types and root properties become global
elements.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Any

from designer.datamodeling.keywords import (
    XML_ATTRIBUTE,
    XSD_BUILTIN_TYPE,
    XSD_NAMESPACES,
    XSD_NS,
    XSD_SCHEMA_ATTRIBUTES,
    XSD_STRUCTURE,
    XSD_TEXT,
    XSD_TOTAL_DIGITS,
    XSD_TYPE,
    format_number,
    fraction_digits_for,
    get_definitions,
    has_facets,
    is_object_like,
    ref_name,
    unwrap_nullable,
)
from designer.utils.xsd_mapping import get_xsd_type

logger = logging.getLogger(__name__)

XS = f"{{{XSD_NS}}}"

DEFAULT_SCHEMA_ATTRIBUTES = {
    "elementFormDefault": "qualified",
    "attributeFormDefault": "unqualified",
}

ET.register_namespace("xs", XSD_NS)


class JsonSchemaToXsdConverter:
    """
    Converter from a JSON Schema document to XSD text.

    The converter keeps no state between calls.
    """

    def convert(self, schema: dict[str, Any]) -> str:
        """
        Convert a JSON Schema to an XSD document.

        Args:
            schema: Parsed JSON Schema

        Returns:
            XSD document as an indented XML string

        Raises:
            ValueError: If the schema has no root element or a reference
                cannot be resolved
        """
        if not isinstance(schema, dict):
            raise ValueError("JSON Schema must be an object")

        definitions = get_definitions(schema)
        type_prefix = self._type_prefix(schema)
        context = _Context(definitions=definitions, type_prefix=type_prefix)

        root = ET.Element(f"{XS}schema")
        attributes = schema.get(XSD_SCHEMA_ATTRIBUTES) or DEFAULT_SCHEMA_ATTRIBUTES
        for name, value in attributes.items():
            root.set(name, str(value))
        for prefix, uri in (schema.get(XSD_NAMESPACES) or {}).items():
            if uri == XSD_NS:
                continue
            root.set(f"xmlns:{prefix}" if prefix else "xmlns", uri)

        self._add_annotation(root, schema)

        root_elements = self._root_elements(schema)
        if not root_elements and not definitions:
            raise ValueError("JSON Schema has no root element")

        for name, subschema in root_elements:
            self._add_element(root, name, subschema, True, context, is_global=True)

        for name, definition in definitions.items():
            if is_object_like(definition) or self._is_complex_alias(definition, context):
                complex_type = ET.SubElement(root, f"{XS}complexType", name=name)
                self._add_annotation(complex_type, definition)
                self._build_complex_type(complex_type, definition, context)
            else:
                simple_type = ET.SubElement(root, f"{XS}simpleType", name=name)
                self._add_annotation(simple_type, definition)
                self._build_simple_type(simple_type, definition, context)

        ET.indent(root, space="  ")
        body = ET.tostring(root, encoding="unicode")
        return f'<?xml version="1.0" encoding="utf-8"?>\n{body}\n'

    def _type_prefix(self, schema: dict[str, Any]) -> str:
        """Prefix to use for references to named types in the target namespace."""
        attributes = schema.get(XSD_SCHEMA_ATTRIBUTES) or {}
        target_namespace = attributes.get("targetNamespace")
        if not target_namespace:
            return ""
        for prefix, uri in (schema.get(XSD_NAMESPACES) or {}).items():
            if uri == target_namespace and prefix:
                return f"{prefix}:"
        return ""

    def _root_elements(self, schema: dict[str, Any]) -> list[tuple[str, dict]]:
        """
        Find the global elements of the schema.

        Root properties each become an element. A root oneOf/anyOf/allOf
        with a single reference becomes one element named after
        info.meldingsnavn or the referenced type.
        """
        properties = schema.get("properties")
        if properties:
            return list(properties.items())

        for key in ("oneOf", "anyOf", "allOf"):
            options = schema.get(key) or []
            refs = [o for o in options if "$ref" in o]
            if len(refs) == 1:
                info = schema.get("info") or {}
                name = info.get("meldingsnavn") or ref_name(refs[0]["$ref"])
                return [(name, refs[0])]

        return []

    def _is_complex_alias(self, definition: dict, context: "_Context") -> bool:
        """Check whether a bare reference points at a complex type."""
        if set(definition) - {"$ref", "description"}:
            return False
        target = context.resolve(definition.get("$ref"))
        return target is not None and is_object_like(target)

    def _add_annotation(self, parent: ET.Element, schema: dict[str, Any]) -> None:
        description = schema.get("description")
        if not description:
            return
        annotation = ET.SubElement(parent, f"{XS}annotation")
        documentation = ET.SubElement(annotation, f"{XS}documentation")
        documentation.text = str(description)

    def _add_element(
        self,
        parent: ET.Element,
        name: str,
        subschema: dict[str, Any],
        required: bool,
        context: "_Context",
        is_global: bool = False,
    ) -> None:
        """Add an xs:element for a property."""
        outer, nillable = unwrap_nullable(subschema)
        min_occurs = 1 if required else 0
        max_occurs: int | str = 1

        item = outer
        if outer.get("type") == "array":
            item, item_nillable = unwrap_nullable(outer.get("items") or {})
            nillable = nillable or item_nillable
            min_occurs = outer.get("minItems", min_occurs)
            max_occurs = outer.get("maxItems", "unbounded")

        element = ET.SubElement(parent, f"{XS}element", name=name)
        if not is_global:
            if min_occurs != 1:
                element.set("minOccurs", str(min_occurs))
            if max_occurs != 1:
                element.set("maxOccurs", str(max_occurs))
        if nillable:
            element.set("nillable", "true")
        if "const" in item:
            element.set("fixed", self._format_value(item["const"]))
        if "default" in item:
            element.set("default", self._format_value(item["default"]))

        self._add_annotation(element, outer)
        self._apply_type(element, item, context)

    def _add_attribute(
        self,
        parent: ET.Element,
        name: str,
        subschema: dict[str, Any],
        required: bool,
        context: "_Context",
    ) -> None:
        """Add an xs:attribute for a property marked as XmlAttribute."""
        attribute = ET.SubElement(parent, f"{XS}attribute", name=name)
        if required:
            attribute.set("use", "required")
        if "const" in subschema:
            attribute.set("fixed", self._format_value(subschema["const"]))
        if "default" in subschema:
            attribute.set("default", self._format_value(subschema["default"]))

        self._add_annotation(attribute, subschema)
        if "$ref" in subschema and not has_facets(subschema):
            attribute.set("type", context.type_name(subschema["$ref"]))
        elif has_facets(subschema) or "allOf" in subschema:
            simple_type = ET.SubElement(attribute, f"{XS}simpleType")
            self._build_simple_type(simple_type, subschema, context)
        else:
            attribute.set("type", self._builtin_type(subschema))

    def _apply_type(
        self, element: ET.Element, schema: dict[str, Any], context: "_Context"
    ) -> None:
        """Set the type of an element, as a reference or an anonymous type."""
        if "$ref" in schema and not has_facets(schema) and "properties" not in schema:
            element.set("type", context.type_name(schema["$ref"]))
        elif is_object_like(schema):
            complex_type = ET.SubElement(element, f"{XS}complexType")
            self._build_complex_type(complex_type, schema, context)
        elif has_facets(schema) or "allOf" in schema:
            simple_type = ET.SubElement(element, f"{XS}simpleType")
            self._build_simple_type(simple_type, schema, context)
        elif "type" in schema or XSD_BUILTIN_TYPE in schema:
            element.set("type", self._builtin_type(schema))

    def _builtin_type(self, schema: dict[str, Any]) -> str:
        if XSD_BUILTIN_TYPE in schema:
            return schema[XSD_BUILTIN_TYPE]
        schema_type = schema.get("type")
        if isinstance(schema_type, list):
            schema_type = next((t for t in schema_type if t != "null"), None)
        return get_xsd_type(schema_type, schema.get("format"))

    def _build_complex_type(
        self, complex_type: ET.Element, schema: dict[str, Any], context: "_Context"
    ) -> None:
        """Fill an xs:complexType from an object-like subschema."""
        base_ref = schema.get("$ref")
        parts = [schema]
        for part in schema.get("allOf") or []:
            if "$ref" in part and base_ref is None:
                base_ref = part["$ref"]
            else:
                parts.append(part)

        properties: dict[str, dict] = {}
        required: set[str] = set()
        structure = schema.get(XSD_STRUCTURE)
        for part in parts:
            properties.update(part.get("properties") or {})
            required.update(part.get("required") or [])
            structure = structure or part.get(XSD_STRUCTURE)

        text_name = next(
            (n for n, p in properties.items() if p.get(XSD_TEXT)), None
        )
        if text_name is not None:
            text_schema = properties.pop(text_name)
            simple_content = ET.SubElement(complex_type, f"{XS}simpleContent")
            if "$ref" in text_schema:
                base = context.type_name(text_schema["$ref"])
            else:
                base = self._builtin_type(text_schema)
            extension = ET.SubElement(simple_content, f"{XS}extension", base=base)
            for name, prop in properties.items():
                if prop.get(XSD_TYPE) != XML_ATTRIBUTE:
                    logger.warning(
                        f"Element '{name}' ignored in simple content type with text '{text_name}'"
                    )
                    continue
                self._add_attribute(extension, name, prop, name in required, context)
            return

        container = complex_type
        if base_ref is not None:
            complex_content = ET.SubElement(complex_type, f"{XS}complexContent")
            container = ET.SubElement(
                complex_content, f"{XS}extension", base=context.type_name(base_ref)
            )

        elements = {
            n: p for n, p in properties.items() if p.get(XSD_TYPE) != XML_ATTRIBUTE
        }
        attributes = {
            n: p for n, p in properties.items() if p.get(XSD_TYPE) == XML_ATTRIBUTE
        }

        if elements:
            group_tag = structure if structure in ("choice", "all") else "sequence"
            group = ET.SubElement(container, f"{XS}{group_tag}")
            for name, prop in elements.items():
                # Choice members are optional in JSON but keep minOccurs=1 in XSD.
                is_required = name in required or group_tag == "choice"
                self._add_element(group, name, prop, is_required, context)

        for name, prop in attributes.items():
            self._add_attribute(container, name, prop, name in required, context)

    def _build_simple_type(
        self, simple_type: ET.Element, schema: dict[str, Any], context: "_Context"
    ) -> None:
        """Fill an xs:simpleType from a primitive subschema with facets."""
        facets = dict(schema)
        base = None
        if "$ref" in schema:
            base = context.type_name(schema["$ref"])
        for part in schema.get("allOf") or []:
            if "$ref" in part:
                base = context.type_name(part["$ref"])
            else:
                facets.update(part)

        if facets.get("type") == "array":
            items = facets.get("items") or {}
            if "$ref" in items:
                item_type = context.type_name(items["$ref"])
            else:
                item_type = self._builtin_type(items)
            ET.SubElement(simple_type, f"{XS}list", itemType=item_type)
            return

        restriction = ET.SubElement(
            simple_type, f"{XS}restriction", base=base or self._builtin_type(facets)
        )

        min_length = facets.get("minLength")
        max_length = facets.get("maxLength")
        if min_length is not None and min_length == max_length:
            ET.SubElement(restriction, f"{XS}length", value=str(min_length))
        else:
            if min_length is not None:
                ET.SubElement(restriction, f"{XS}minLength", value=str(min_length))
            if max_length is not None:
                ET.SubElement(restriction, f"{XS}maxLength", value=str(max_length))

        for value in facets.get("enum") or []:
            if value is None:
                continue
            ET.SubElement(
                restriction, f"{XS}enumeration", value=self._format_value(value)
            )

        if "pattern" in facets:
            ET.SubElement(
                restriction, f"{XS}pattern", value=self._strip_anchors(facets["pattern"])
            )

        for keyword, facet in (
            ("minimum", "minInclusive"),
            ("maximum", "maxInclusive"),
            ("exclusiveMinimum", "minExclusive"),
            ("exclusiveMaximum", "maxExclusive"),
        ):
            if keyword in facets:
                ET.SubElement(
                    restriction, f"{XS}{facet}", value=format_number(facets[keyword])
                )

        if XSD_TOTAL_DIGITS in facets:
            ET.SubElement(
                restriction, f"{XS}totalDigits", value=str(facets[XSD_TOTAL_DIGITS])
            )

        if "multipleOf" in facets:
            digits = fraction_digits_for(facets["multipleOf"])
            if digits is None:
                logger.warning(
                    f"multipleOf {facets['multipleOf']} has no XSD equivalent, skipped"
                )
            else:
                ET.SubElement(restriction, f"{XS}fractionDigits", value=str(digits))

    @staticmethod
    def _strip_anchors(pattern: str) -> str:
        if pattern.startswith("^"):
            pattern = pattern[1:]
        if pattern.endswith("$") and not pattern.endswith("\\$"):
            pattern = pattern[:-1]
        return pattern

    @staticmethod
    def _format_value(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return format_number(value)
        return str(value)


class _Context:
    """Lookup helpers shared by one conversion run."""

    def __init__(self, definitions: dict[str, dict], type_prefix: str):
        self.definitions = definitions
        self.type_prefix = type_prefix

    def resolve(self, ref: str | None) -> dict | None:
        if ref is None:
            return None
        return self.definitions.get(ref_name(ref))

    def type_name(self, ref: str) -> str:
        name = ref_name(ref)
        if name not in self.definitions:
            raise ValueError(f"Unresolved reference '{ref}'")
        return f"{self.type_prefix}{name}"
