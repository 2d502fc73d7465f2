"""
XSD to JSON Schema conversion.

Named XSD types become "$defs" entries and global elements become root
properties. Constructs without a JSON Schema counterpart are logged and
skipped.
"""

import io
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
    multiple_of_for,
)
from designer.utils.xsd_mapping import get_json_type, is_canonical, normalize_xsd_type

logger = logging.getLogger(__name__)

XS = f"{{{XSD_NS}}}"

JSON_SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"

TEXT_PROPERTY_NAME = "value"


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


class XsdToJsonSchemaConverter:
    """
    Converter from XSD text to a JSON Schema document (draft 2020-12).
    """

    def convert(self, xsd: str | bytes) -> dict[str, Any]:
        """
        Convert an XSD document to JSON Schema.

        Args:
            xsd: XSD document

        Returns:
            JSON Schema as a dict

        Raises:
            ValueError: If the document is not a valid XML Schema
        """
        data = xsd.encode("utf-8") if isinstance(xsd, str) else xsd
        try:
            namespaces = self._read_namespaces(data)
            root = ET.fromstring(data)
        except ET.ParseError as e:
            raise ValueError(f"Invalid XSD: {e}") from e

        if root.tag != f"{XS}schema":
            raise ValueError("Root element is not an XML Schema (xs:schema)")

        self._namespaces = namespaces
        self._global_elements = {
            child.get("name"): child
            for child in root
            if child.tag == f"{XS}element" and child.get("name")
        }

        schema: dict[str, Any] = {"$schema": JSON_SCHEMA_DIALECT}
        custom_namespaces = {p: u for p, u in namespaces.items() if u != XSD_NS}
        if custom_namespaces:
            schema[XSD_NAMESPACES] = custom_namespaces
        if root.attrib:
            schema[XSD_SCHEMA_ATTRIBUTES] = dict(root.attrib)

        description = self._documentation(root)
        if description:
            schema["description"] = description

        schema["type"] = "object"
        properties: dict[str, Any] = {}
        definitions: dict[str, Any] = {}

        for child in root:
            tag = _local(child.tag)
            name = child.get("name")
            if tag == "complexType":
                definitions[name] = self._complex_type(child)
            elif tag == "simpleType":
                definitions[name] = self._simple_type(child)

        for child in root:
            tag = _local(child.tag)
            name = child.get("name")
            if tag == "element":
                type_attr = child.get("type")
                if type_attr:
                    properties[name] = self._type_reference(type_attr)
                else:
                    definition_name = name
                    while definition_name in definitions:
                        definition_name = f"{definition_name}Type"
                    definitions[definition_name] = self._anonymous_type(child)
                    properties[name] = {"$ref": f"#/$defs/{definition_name}"}
                element_description = self._documentation(child)
                if element_description:
                    properties[name]["description"] = element_description
            elif tag in ("complexType", "simpleType", "annotation"):
                continue
            else:
                logger.warning(f"Unsupported top-level XSD construct '{tag}' skipped")

        if properties:
            schema["properties"] = properties
        if definitions:
            schema["$defs"] = definitions
        return schema

    @staticmethod
    def _read_namespaces(data: bytes) -> dict[str, str]:
        namespaces: dict[str, str] = {}
        for _, (prefix, uri) in ET.iterparse(io.BytesIO(data), events=("start-ns",)):
            namespaces.setdefault(prefix, uri)
        return namespaces

    def _documentation(self, node: ET.Element) -> str | None:
        annotation = node.find(f"{XS}annotation")
        if annotation is None:
            return None
        texts = [
            (doc.text or "").strip()
            for doc in annotation.findall(f"{XS}documentation")
            if (doc.text or "").strip()
        ]
        return "\n".join(texts) or None

    def _is_builtin(self, qname: str) -> bool:
        if ":" in qname:
            prefix = qname.split(":", 1)[0]
            if self._namespaces.get(prefix) != XSD_NS:
                return False
        elif self._namespaces.get("") != XSD_NS:
            return False
        return normalize_xsd_type(qname) is not None

    def _type_reference(self, qname: str) -> dict[str, Any]:
        """JSON fragment for a type attribute: a built-in type or a $ref."""
        if self._is_builtin(qname):
            normalized = normalize_xsd_type(qname)
            fragment: dict[str, Any] = get_json_type(normalized)
            if fragment and not is_canonical(normalized, fragment):
                fragment[XSD_BUILTIN_TYPE] = normalized
            return fragment
        return {"$ref": f"#/$defs/{qname.split(':')[-1]}"}

    def _anonymous_type(self, element: ET.Element) -> dict[str, Any]:
        complex_type = element.find(f"{XS}complexType")
        if complex_type is not None:
            return self._complex_type(complex_type)
        simple_type = element.find(f"{XS}simpleType")
        if simple_type is not None:
            return self._simple_type(simple_type)
        return {}

    def _element(self, element: ET.Element) -> tuple[str, dict[str, Any], bool]:
        """
        Convert a local xs:element.

        Returns:
            (property name, subschema, required)
        """
        ref = element.get("ref")
        if ref:
            name = ref.split(":")[-1]
            target = self._global_elements.get(name)
            if target is not None and target.get("type"):
                fragment = self._type_reference(target.get("type"))
            else:
                fragment = {"$ref": f"#/$defs/{name}"}
        else:
            name = element.get("name")
            type_attr = element.get("type")
            if type_attr:
                fragment = self._type_reference(type_attr)
            else:
                fragment = self._anonymous_type(element)

        if element.get("fixed") is not None:
            fragment["const"] = self._typed_value(element.get("fixed"), fragment)
        if element.get("default") is not None:
            fragment["default"] = self._typed_value(element.get("default"), fragment)

        if element.get("nillable") == "true":
            fragment = self._nullable(fragment)

        min_occurs = int(element.get("minOccurs", "1"))
        max_attr = element.get("maxOccurs", "1")
        max_occurs = None if max_attr == "unbounded" else int(max_attr)

        if max_occurs is None or max_occurs > 1:
            array: dict[str, Any] = {"type": "array", "items": fragment}
            if min_occurs > 0:
                array["minItems"] = min_occurs
            if max_occurs is not None:
                array["maxItems"] = max_occurs
            fragment = array

        description = self._documentation(element)
        if description:
            fragment["description"] = description

        return name, fragment, min_occurs > 0

    @staticmethod
    def _nullable(fragment: dict[str, Any]) -> dict[str, Any]:
        if "$ref" in fragment:
            return {"oneOf": [fragment, {"type": "null"}]}
        if isinstance(fragment.get("type"), str):
            return {**fragment, "type": [fragment["type"], "null"]}
        return fragment

    def _attribute(self, attribute: ET.Element) -> tuple[str, dict[str, Any], bool]:
        name = attribute.get("name") or (attribute.get("ref") or "").split(":")[-1]
        type_attr = attribute.get("type")
        if type_attr:
            fragment = self._type_reference(type_attr)
        else:
            simple_type = attribute.find(f"{XS}simpleType")
            fragment = self._simple_type(simple_type) if simple_type is not None else {
                "type": "string"
            }

        fragment[XSD_TYPE] = XML_ATTRIBUTE
        if attribute.get("fixed") is not None:
            fragment["const"] = self._typed_value(attribute.get("fixed"), fragment)
        if attribute.get("default") is not None:
            fragment["default"] = self._typed_value(attribute.get("default"), fragment)

        description = self._documentation(attribute)
        if description:
            fragment["description"] = description
        return name, fragment, attribute.get("use") == "required"

    def _complex_type(self, complex_type: ET.Element) -> dict[str, Any]:
        schema: dict[str, Any] = {}
        description = self._documentation(complex_type)
        if description:
            schema["description"] = description

        properties: dict[str, Any] = {}
        required: list[str] = []
        base_ref = None

        for child in complex_type:
            tag = _local(child.tag)
            if tag in ("sequence", "choice", "all"):
                if tag != "sequence":
                    schema[XSD_STRUCTURE] = tag
                self._particles(child, properties, required)
            elif tag == "attribute":
                self._add_attribute(child, properties, required)
            elif tag == "simpleContent":
                self._simple_content(child, properties, required)
            elif tag == "complexContent":
                derivation = child.find(f"{XS}extension")
                if derivation is None:
                    derivation = child.find(f"{XS}restriction")
                    logger.warning("complexContent restriction converted without its base type")
                elif derivation.get("base"):
                    base_ref = self._type_reference(derivation.get("base"))
                if derivation is not None:
                    for part in derivation:
                        part_tag = _local(part.tag)
                        if part_tag in ("sequence", "choice", "all"):
                            if part_tag != "sequence":
                                schema[XSD_STRUCTURE] = part_tag
                            self._particles(part, properties, required)
                        elif part_tag == "attribute":
                            self._add_attribute(part, properties, required)
            elif tag != "annotation":
                logger.warning(f"Unsupported complexType content '{tag}' skipped")

        body: dict[str, Any] = {"type": "object"}
        if properties:
            body["properties"] = properties
        if required:
            body["required"] = required

        if base_ref is not None:
            schema["allOf"] = [base_ref, body]
            return schema

        structure = schema.pop(XSD_STRUCTURE, None)
        schema.update(body)
        if structure:
            schema[XSD_STRUCTURE] = structure
        return schema

    def _particles(
        self, group: ET.Element, properties: dict[str, Any], required: list[str]
    ) -> None:
        for particle in group:
            tag = _local(particle.tag)
            if tag == "element":
                name, fragment, is_required = self._element(particle)
                properties[name] = fragment
                if is_required and _local(group.tag) != "choice":
                    required.append(name)
            elif tag in ("sequence", "choice", "all"):
                # Nested groups are flattened into the parent.
                self._particles(particle, properties, required)
            elif tag == "any":
                logger.warning("xs:any wildcard skipped")
            elif tag != "annotation":
                logger.warning(f"Unsupported particle '{tag}' skipped")

    def _add_attribute(
        self, attribute: ET.Element, properties: dict[str, Any], required: list[str]
    ) -> None:
        name, fragment, is_required = self._attribute(attribute)
        properties[name] = fragment
        if is_required:
            required.append(name)

    def _simple_content(
        self, simple_content: ET.Element, properties: dict[str, Any], required: list[str]
    ) -> None:
        derivation = simple_content.find(f"{XS}extension")
        if derivation is None:
            derivation = simple_content.find(f"{XS}restriction")
        if derivation is None:
            return

        text = self._type_reference(derivation.get("base", "xs:string"))
        text[XSD_TEXT] = True
        properties[TEXT_PROPERTY_NAME] = text
        for part in derivation:
            if _local(part.tag) == "attribute":
                self._add_attribute(part, properties, required)

    def _simple_type(self, simple_type: ET.Element) -> dict[str, Any]:
        schema: dict[str, Any] = {}
        description = self._documentation(simple_type)

        restriction = simple_type.find(f"{XS}restriction")
        list_node = simple_type.find(f"{XS}list")
        union = simple_type.find(f"{XS}union")

        if restriction is not None:
            schema = self._restriction(restriction)
        elif list_node is not None:
            item_type = list_node.get("itemType")
            if item_type:
                items = self._type_reference(item_type)
            else:
                nested = list_node.find(f"{XS}simpleType")
                items = self._simple_type(nested) if nested is not None else {"type": "string"}
            schema = {"type": "array", "items": items}
        elif union is not None:
            logger.warning("xs:union converted to a plain string")
            schema = {"type": "string"}

        if description:
            schema = {"description": description, **schema}
        return schema

    def _restriction(self, restriction: ET.Element) -> dict[str, Any]:
        base = restriction.get("base")
        if base:
            base_fragment = self._type_reference(base)
        else:
            nested = restriction.find(f"{XS}simpleType")
            base_fragment = self._simple_type(nested) if nested is not None else {
                "type": "string"
            }

        facets: dict[str, Any] = {}
        enumeration: list[Any] = []
        patterns: list[str] = []

        for facet in restriction:
            tag = _local(facet.tag)
            value = facet.get("value")
            if value is None:
                continue
            if tag == "enumeration":
                enumeration.append(self._typed_value(value, base_fragment))
            elif tag == "pattern":
                patterns.append(value)
            elif tag == "length":
                facets["minLength"] = int(value)
                facets["maxLength"] = int(value)
            elif tag in ("minLength", "maxLength"):
                facets[tag] = int(value)
            elif tag in ("minInclusive", "maxInclusive", "minExclusive", "maxExclusive"):
                if base_fragment.get("type") not in ("integer", "number"):
                    logger.warning(f"{tag} on non-numeric type '{base}' skipped")
                    continue
                keyword = {
                    "minInclusive": "minimum",
                    "maxInclusive": "maximum",
                    "minExclusive": "exclusiveMinimum",
                    "maxExclusive": "exclusiveMaximum",
                }[tag]
                facets[keyword] = self._number(value)
            elif tag == "totalDigits":
                facets[XSD_TOTAL_DIGITS] = int(value)
            elif tag == "fractionDigits":
                facets["multipleOf"] = multiple_of_for(int(value))
            elif tag == "whiteSpace":
                continue
            else:
                logger.warning(f"Unsupported facet '{tag}' skipped")

        if enumeration:
            facets["enum"] = enumeration
        if patterns:
            # Multiple patterns in one restriction are alternatives.
            joined = "|".join(f"(?:{p})" for p in patterns) if len(patterns) > 1 else patterns[0]
            facets["pattern"] = f"^{joined}$"

        if "$ref" in base_fragment:
            if not facets:
                return base_fragment
            return {"allOf": [base_fragment, facets]}

        return {**base_fragment, **facets}

    @staticmethod
    def _number(value: str) -> int | float:
        try:
            return int(value)
        except ValueError:
            return float(value)

    def _typed_value(self, value: str, fragment: dict[str, Any]) -> Any:
        json_type = fragment.get("type")
        if isinstance(json_type, list):
            json_type = next((t for t in json_type if t != "null"), None)
        try:
            if json_type == "integer":
                return int(value)
            if json_type == "number":
                return self._number(value)
        except ValueError:
            return value
        if json_type == "boolean":
            return value.strip().lower() in ("true", "1")
        return value
