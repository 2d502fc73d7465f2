"""
JSON Schema to metamodel conversion.

Flattens the element tree described by a JSON Schema into ModelMetadata:
one ElementMetadata per element, keyed by its dotted path from the root.
"""

import logging
from typing import Any

from designer.datamodeling.keywords import (
    XML_ATTRIBUTE,
    XSD_BUILTIN_TYPE,
    XSD_TEXT,
    XSD_TOTAL_DIGITS,
    XSD_TYPE,
    format_number,
    fraction_digits_for,
    is_object_like,
    ref_name,
    unwrap_nullable,
)
from designer.schemas.datamodel import (
    UNBOUNDED_MAX_OCCURS,
    ElementMetadata,
    ModelMetadata,
    Restriction,
)
from designer.utils.xsd_mapping import get_value_type_name, get_xsd_type

logger = logging.getLogger(__name__)

RESTRICTION_KEYWORDS = {
    "minLength": "minLength",
    "maxLength": "maxLength",
    "pattern": "pattern",
    "minimum": "minInclusive",
    "maximum": "maxInclusive",
    "exclusiveMinimum": "minExclusive",
    "exclusiveMaximum": "maxExclusive",
    XSD_TOTAL_DIGITS: "totalDigits",
}


class _ResolvedType:
    """A subschema with references and allOf parts merged."""

    def __init__(self):
        self.schema: dict[str, Any] = {}
        self.properties: dict[str, tuple[dict, str]] = {}
        self.required: set[str] = set()
        self.type_name: str | None = None


class JsonSchemaToMetamodelConverter:
    """
    Converter from a JSON Schema document to ModelMetadata.
    """

    def __init__(self, org: str | None = None, app: str | None = None):
        self.org = org
        self.app = app

    def convert(self, schema: dict[str, Any]) -> ModelMetadata:
        """
        Build the metamodel for a JSON Schema.

        Raises:
            ValueError: If the schema has no root element or a reference
                cannot be resolved
        """
        self._definitions: dict[str, tuple[dict, str]] = {}
        for key in ("$defs", "definitions"):
            for name, definition in (schema.get(key) or {}).items():
                self._definitions[name] = (definition, f"#/{key}/{name}")

        roots = self._root_elements(schema)
        if not roots:
            raise ValueError("JSON Schema has no root element")

        metadata = ModelMetadata(
            org=self.org, service_name=self.app, repository_name=self.app
        )
        for name, subschema, pointer in roots:
            self._add_element(
                metadata.elements,
                name=name,
                subschema=subschema,
                pointer=pointer,
                parent_id=None,
                parent_xpath="",
                required=True,
                ancestors=(),
            )

        logger.debug(f"Built metamodel with {len(metadata.elements)} elements")
        return metadata

    def _root_elements(self, schema: dict[str, Any]) -> list[tuple[str, dict, str]]:
        properties = schema.get("properties")
        if properties:
            return [
                (name, sub, f"#/properties/{name}") for name, sub in properties.items()
            ]

        for key in ("oneOf", "anyOf", "allOf"):
            options = schema.get(key) or []
            refs = [(i, o) for i, o in enumerate(options) if "$ref" in o]
            if len(refs) == 1:
                index, option = refs[0]
                info = schema.get("info") or {}
                name = info.get("meldingsnavn") or ref_name(option["$ref"])
                return [(name, option, f"#/{key}/{index}")]

        return []

    def _resolve(self, subschema: dict[str, Any], pointer: str) -> _ResolvedType:
        resolved = _ResolvedType()
        seen: set[str] = set()

        def visit(schema: dict[str, Any], schema_pointer: str) -> None:
            if "$ref" in schema:
                name = ref_name(schema["$ref"])
                if name not in self._definitions:
                    raise ValueError(f"Unresolved reference '{schema['$ref']}'")
                if name not in seen:
                    seen.add(name)
                    resolved.type_name = resolved.type_name or name
                    target, target_pointer = self._definitions[name]
                    visit(target, target_pointer)

            for index, part in enumerate(schema.get("allOf") or []):
                visit(part, f"{schema_pointer}/allOf/{index}")

            for prop_name, prop in (schema.get("properties") or {}).items():
                resolved.properties[prop_name] = (
                    prop,
                    f"{schema_pointer}/properties/{prop_name}",
                )
            resolved.required.update(schema.get("required") or [])
            for key, value in schema.items():
                if key not in ("$ref", "allOf", "properties", "required"):
                    resolved.schema[key] = value

        visit(subschema, pointer)
        if resolved.properties:
            resolved.schema["properties"] = {
                name: prop for name, (prop, _) in resolved.properties.items()
            }
        return resolved

    def _add_element(
        self,
        elements: dict[str, ElementMetadata],
        name: str,
        subschema: dict[str, Any],
        pointer: str,
        parent_id: str | None,
        parent_xpath: str,
        required: bool,
        ancestors: tuple[str, ...],
    ) -> None:
        is_attribute = subschema.get(XSD_TYPE) == XML_ATTRIBUTE
        is_text = bool(subschema.get(XSD_TEXT))

        outer, nillable = unwrap_nullable(subschema)
        min_occurs = 1 if required else 0
        max_occurs = 1
        item = outer
        item_pointer = pointer
        if outer.get("type") == "array":
            item, item_nillable = unwrap_nullable(outer.get("items") or {})
            nillable = nillable or item_nillable
            min_occurs = outer.get("minItems", min_occurs)
            max_occurs = outer.get("maxItems", UNBOUNDED_MAX_OCCURS)
            item_pointer = f"{pointer}/items"

        resolved = self._resolve(item, item_pointer)
        element_id = f"{parent_id}.{name}" if parent_id else name
        if is_attribute:
            xpath = f"{parent_xpath}/@{name}"
        elif is_text:
            xpath = parent_xpath
        else:
            xpath = f"{parent_xpath}/{name}"
        data_binding_name = element_id.split(".", 1)[1] if parent_id else None

        if is_object_like(resolved.schema):
            type_name = resolved.type_name or name
            elements[element_id] = ElementMetadata(
                id=element_id,
                parent_element=parent_id,
                type_name=type_name,
                name=name,
                data_binding_name=data_binding_name,
                x_path=xpath,
                type="Group",
                min_occurs=min_occurs,
                max_occurs=max_occurs,
                x_name=name,
                nillable=nillable,
                json_schema_pointer=pointer,
                display_string=f"{element_id} : [{min_occurs}..{max_occurs}] {type_name}",
            )

            # Only named definitions can recur; inline objects are always expanded.
            definition = resolved.type_name
            if definition is not None and definition in ancestors:
                logger.warning(
                    f"Recursive type '{definition}' at {element_id} is not expanded"
                )
                return
            if definition is not None:
                ancestors = ancestors + (definition,)

            for child_name, (child, child_pointer) in resolved.properties.items():
                self._add_element(
                    elements,
                    name=child_name,
                    subschema=child,
                    pointer=child_pointer,
                    parent_id=element_id,
                    parent_xpath=xpath,
                    required=child_name in resolved.required,
                    ancestors=ancestors,
                )
            return

        schema = resolved.schema
        xsd_type = schema.get(XSD_BUILTIN_TYPE) or get_xsd_type(
            self._primitive_type(schema), schema.get("format")
        )
        value_type = get_value_type_name(xsd_type)
        fixed = schema.get("const")

        elements[element_id] = ElementMetadata(
            id=element_id,
            parent_element=parent_id,
            type_name=resolved.type_name or name,
            name=name,
            data_binding_name=data_binding_name,
            x_path=xpath,
            restrictions=self._restrictions(schema),
            type="Attribute" if is_attribute else "Field",
            xsd_value_type=value_type,
            min_occurs=min_occurs,
            max_occurs=max_occurs,
            x_name=name,
            is_tag_content=is_text,
            fixed_value=None if fixed is None else str(fixed),
            nillable=nillable,
            json_schema_pointer=pointer,
            display_string=f"{element_id} : [{min_occurs}..{max_occurs}] {value_type}",
        )

    @staticmethod
    def _primitive_type(schema: dict[str, Any]) -> str | None:
        schema_type = schema.get("type")
        if isinstance(schema_type, list):
            return next((t for t in schema_type if t != "null"), None)
        return schema_type

    @staticmethod
    def _restrictions(schema: dict[str, Any]) -> dict[str, Restriction]:
        restrictions: dict[str, Restriction] = {}
        for keyword, name in RESTRICTION_KEYWORDS.items():
            if keyword in schema:
                value = schema[keyword]
                text = format_number(value) if isinstance(value, (int, float)) else str(value)
                restrictions[name] = Restriction(value=text)

        if schema.get("enum"):
            restrictions["enumeration"] = Restriction(
                value=";".join(str(v) for v in schema["enum"] if v is not None)
            )

        if "multipleOf" in schema:
            digits = fraction_digits_for(schema["multipleOf"])
            if digits is not None:
                restrictions["fractionDigits"] = Restriction(value=str(digits))

        return restrictions
