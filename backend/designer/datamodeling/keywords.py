"""
Custom JSON Schema keywords that carry XSD-only information.

They let an XSD survive the trip through JSON Schema and back.
"""

from decimal import Decimal

XSD_NS = "http://www.w3.org/2001/XMLSchema"

# "XmlAttribute" marks a property serialized as an XML attribute
XSD_TYPE = "@xsdType"
XML_ATTRIBUTE = "XmlAttribute"

# true marks the text content of a simpleContent type
XSD_TEXT = "@xsdText"

# "choice" or "all" (sequence is the default)
XSD_STRUCTURE = "@xsdStructure"

# prefix -> namespace URI declared on xs:schema
XSD_NAMESPACES = "@xsdNamespaces"

# attributes of xs:schema, e.g. elementFormDefault
XSD_SCHEMA_ATTRIBUTES = "@xsdSchemaAttributes"

# the built-in XSD type when it is not the canonical one for the JSON type
XSD_BUILTIN_TYPE = "@xsdBuiltinType"

XSD_TOTAL_DIGITS = "@xsdTotalDigits"

DEFINITION_KEYS = ("$defs", "definitions")

STRING_FACETS = ("minLength", "maxLength", "pattern")
NUMERIC_FACETS = (
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
)
FACET_KEYWORDS = STRING_FACETS + NUMERIC_FACETS + ("enum", XSD_TOTAL_DIGITS)


def get_definitions(schema: dict) -> dict[str, dict]:
    """Get named definitions from "$defs" and "definitions"."""
    definitions: dict[str, dict] = {}
    for key in DEFINITION_KEYS:
        definitions.update(schema.get(key) or {})
    return definitions


def ref_name(ref: str) -> str:
    """Get the definition name from a local reference like "#/$defs/Name"."""
    return ref.rsplit("/", 1)[-1]


def has_facets(schema: dict) -> bool:
    return any(keyword in schema for keyword in FACET_KEYWORDS)


def is_object_like(schema: dict) -> bool:
    """Check whether a subschema describes a complex (object) type."""
    if schema.get("type") == "object" or "properties" in schema:
        return True
    for part in schema.get("allOf") or []:
        if "properties" in part or part.get("type") == "object":
            return True
    return False


def unwrap_nullable(schema: dict) -> tuple[dict, bool]:
    """
    Split a nullable subschema into its non-null part and a nillable flag.

    Handles {"type": ["string", "null"]} and
    {"oneOf": [{"$ref": ...}, {"type": "null"}]}.
    """
    schema_type = schema.get("type")
    if isinstance(schema_type, list) and "null" in schema_type:
        remaining = [t for t in schema_type if t != "null"]
        unwrapped = dict(schema)
        unwrapped["type"] = remaining[0] if len(remaining) == 1 else remaining
        return unwrapped, True

    for key in ("oneOf", "anyOf"):
        options = schema.get(key)
        if isinstance(options, list) and len(options) == 2:
            non_null = [o for o in options if o.get("type") != "null"]
            if len(non_null) == 1:
                unwrapped = {k: v for k, v in schema.items() if k != key}
                unwrapped.update(non_null[0])
                return unwrapped, True

    return schema, False


def fraction_digits_for(multiple_of: float | int) -> int | None:
    """
    Get the xs:fractionDigits value expressed by a multipleOf.

    Only powers of ten (1, 0.1, 0.01, ...) have an XSD counterpart.
    """
    value = Decimal(str(multiple_of)).normalize()
    sign, digits, exponent = value.as_tuple()
    if sign or digits != (1,) or exponent > 0:
        return None
    return -exponent


def multiple_of_for(fraction_digits: int) -> float | int:
    """Get the multipleOf matching an xs:fractionDigits value."""
    if fraction_digits <= 0:
        return 1
    return float(Decimal(1).scaleb(-fraction_digits))


def format_number(value: float | int) -> str:
    """Format a number without a trailing ".0" or exponent."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float):
        return format(Decimal(str(value)), "f")
    return str(value)
