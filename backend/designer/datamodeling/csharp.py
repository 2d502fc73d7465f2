"""
C# model class generation from ModelMetadata.

Apps bind their form data to C# classes; one class is generated per group
type, with XML and JSON serialization attributes matching the data model.
"""

import re

from designer.schemas.datamodel import ElementMetadata, ModelMetadata

DEFAULT_NAMESPACE = "Altinn.App.Models"

VALUE_TYPE_TO_CSHARP: dict[str, str] = {
    "String": "string",
    "NormalizedString": "string",
    "Token": "string",
    "Boolean": "bool",
    "Decimal": "decimal",
    "Integer": "decimal",
    "PositiveInteger": "decimal",
    "NonNegativeInteger": "decimal",
    "NegativeInteger": "decimal",
    "NonPositiveInteger": "decimal",
    "Int": "int",
    "Long": "long",
    "Short": "short",
    "Byte": "sbyte",
    "UnsignedInt": "uint",
    "UnsignedLong": "ulong",
    "UnsignedShort": "ushort",
    "UnsignedByte": "byte",
    "Double": "double",
    "Float": "float",
    "Date": "DateTime",
    "DateTime": "DateTime",
}

NON_NULLABLE_TYPES = {"string"}

USINGS = [
    "System",
    "System.Collections.Generic",
    "System.ComponentModel.DataAnnotations",
    "System.Text.Json.Serialization",
    "System.Xml.Serialization",
    "Newtonsoft.Json",
]


def to_identifier(name: str) -> str:
    """Make a valid C# identifier from an XML name."""
    identifier = re.sub(r"[^0-9A-Za-z_]", "_", name)
    if not identifier or identifier[0].isdigit():
        identifier = f"_{identifier}"
    return identifier


class CSharpModelGenerator:
    """Generates C# source for the classes of a data model."""

    def __init__(self, namespace: str = DEFAULT_NAMESPACE):
        self.namespace = namespace

    def generate(self, metadata: ModelMetadata) -> str:
        """
        Generate C# model classes.

        Raises:
            ValueError: If the metadata has no root element
        """
        root = metadata.root_element()
        if root is None:
            raise ValueError("Model metadata has no root element")

        lines = [f"using {u};" for u in USINGS]
        lines += ["", f"namespace {self.namespace}", "{"]

        generated: set[str] = set()
        for element in metadata.elements.values():
            if element.type != "Group":
                continue
            class_name = to_identifier(element.type_name or element.name)
            if class_name in generated:
                continue
            generated.add(class_name)
            lines += self._class(metadata, element, class_name, element is root)

        if lines[-1] == "":
            lines.pop()
        lines.append("}")
        return "\n".join(lines) + "\n"

    def _class(
        self,
        metadata: ModelMetadata,
        group: ElementMetadata,
        class_name: str,
        is_root: bool,
    ) -> list[str]:
        lines = []
        if is_root:
            lines.append(f'  [XmlRoot(ElementName="{group.x_name}")]')
        lines.append(f"  public class {class_name}")
        lines.append("  {")

        order = 0
        for child in metadata.children_of(group.id):
            if child.type == "Attribute":
                lines.append(f'    [XmlAttribute("{child.x_name}")]')
            elif child.is_tag_content:
                lines.append("    [XmlText()]")
            else:
                order += 1
                lines.append(f'    [XmlElement("{child.x_name}", Order = {order})]')

            lines += self._validation_attributes(child)
            lines.append(f'    [JsonProperty("{child.name}")]')
            lines.append(f'    [JsonPropertyName("{child.name}")]')

            property_name = to_identifier(child.name)
            if property_name == class_name:
                property_name = f"{property_name}_"
            lines.append(
                f"    public {self._property_type(child)} {property_name} {{ get; set; }}"
            )
            lines.append("")

        if lines[-1] == "":
            lines.pop()
        lines.append("  }")
        lines.append("")
        return lines

    def _property_type(self, element: ElementMetadata) -> str:
        if element.type == "Group":
            type_name = to_identifier(element.type_name or element.name)
        else:
            type_name = VALUE_TYPE_TO_CSHARP.get(element.xsd_value_type or "", "string")
            optional = element.min_occurs == 0 or element.nillable
            if optional and type_name not in NON_NULLABLE_TYPES:
                type_name = f"{type_name}?"

        if element.max_occurs > 1:
            return f"List<{type_name}>"
        return type_name

    def _validation_attributes(self, element: ElementMetadata) -> list[str]:
        restrictions = element.restrictions
        lines = []

        if "minLength" in restrictions:
            lines.append(f"    [MinLength({restrictions['minLength'].value})]")
        if "maxLength" in restrictions:
            lines.append(f"    [MaxLength({restrictions['maxLength'].value})]")
        if "pattern" in restrictions:
            pattern = restrictions["pattern"].value.replace('"', '""')
            lines.append(f'    [RegularExpression(@"{pattern}")]')

        minimum = restrictions.get("minInclusive")
        maximum = restrictions.get("maxInclusive")
        if minimum is not None or maximum is not None:
            low = minimum.value if minimum is not None else "Double.MinValue"
            high = maximum.value if maximum is not None else "Double.MaxValue"
            lines.append(f"    [Range({low}, {high})]")

        if (
            element.type == "Field"
            and element.min_occurs >= 1
            and element.max_occurs == 1
            and not element.nillable
        ):
            lines.append("    [Required]")

        return lines
