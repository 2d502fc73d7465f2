"""
XSD to JSON Schema type mapping.

Maps XML Schema built-in datatypes to JSON Schema type fragments, and back.
Also derives the metamodel value type names used in model metadata.
"""

# Mapping from XSD datatypes to JSON Schema fragments
XSD_TO_JSON_TYPE: dict[str, dict[str, str]] = {
    # String types
    "xs:string": {"type": "string"},
    "xs:normalizedString": {"type": "string"},
    "xs:token": {"type": "string"},
    "xs:language": {"type": "string"},
    "xs:Name": {"type": "string"},
    "xs:NCName": {"type": "string"},
    "xs:ID": {"type": "string"},
    "xs:IDREF": {"type": "string"},
    "xs:ENTITY": {"type": "string"},
    "xs:NMTOKEN": {"type": "string"},
    # Boolean
    "xs:boolean": {"type": "boolean"},
    # Numeric types (decimal-based)
    "xs:decimal": {"type": "number"},
    "xs:float": {"type": "number"},
    "xs:double": {"type": "number"},
    # Integer types
    "xs:integer": {"type": "integer"},
    "xs:int": {"type": "integer"},
    "xs:long": {"type": "integer"},
    "xs:short": {"type": "integer"},
    "xs:byte": {"type": "integer"},
    "xs:nonPositiveInteger": {"type": "integer"},
    "xs:negativeInteger": {"type": "integer"},
    "xs:nonNegativeInteger": {"type": "integer"},
    "xs:positiveInteger": {"type": "integer"},
    "xs:unsignedInt": {"type": "integer"},
    "xs:unsignedLong": {"type": "integer"},
    "xs:unsignedShort": {"type": "integer"},
    "xs:unsignedByte": {"type": "integer"},
    # Date and time types
    "xs:date": {"type": "string", "format": "date"},
    "xs:time": {"type": "string", "format": "time"},
    "xs:dateTime": {"type": "string", "format": "date-time"},
    "xs:gYear": {"type": "string"},
    "xs:gYearMonth": {"type": "string"},
    "xs:gMonth": {"type": "string"},
    "xs:gMonthDay": {"type": "string"},
    "xs:gDay": {"type": "string"},
    "xs:duration": {"type": "string"},
    "xs:yearMonthDuration": {"type": "string"},
    "xs:dayTimeDuration": {"type": "string"},
    # URI types
    "xs:anyURI": {"type": "string", "format": "uri"},
    # Binary types
    "xs:base64Binary": {"type": "string", "contentEncoding": "base64"},
    "xs:hexBinary": {"type": "string"},
    # QName
    "xs:QName": {"type": "string"},
    "xs:NOTATION": {"type": "string"},
    # Untyped
    "xs:anyType": {},
    "xs:anySimpleType": {"type": "string"},
}

# Canonical XSD type for a JSON Schema "format"
JSON_FORMAT_TO_XSD: dict[str, str] = {
    "date": "xs:date",
    "time": "xs:time",
    "date-time": "xs:dateTime",
    "uri": "xs:anyURI",
}

# Canonical XSD type for a JSON Schema "type"
JSON_TYPE_TO_XSD: dict[str, str] = {
    "string": "xs:string",
    "integer": "xs:integer",
    "number": "xs:decimal",
    "boolean": "xs:boolean",
}


def normalize_xsd_type(xsd_type: str | None) -> str | None:
    """
    Normalize a built-in XSD type name to the "xs:" prefix.

    Args:
        xsd_type: XSD datatype string (e.g., "xsd:string" or "string")

    Returns:
        Normalized type (e.g., "xs:string"), or None when not built-in
    """
    if xsd_type is None:
        return None

    type_str = str(xsd_type).strip()
    local_name = type_str.split(":")[-1]
    candidate = f"xs:{local_name}"
    if candidate in XSD_TO_JSON_TYPE:
        return candidate
    return None


def get_json_type(xsd_type: str | None) -> dict[str, str]:
    """
    Get the JSON Schema fragment for a built-in XSD datatype.

    Unknown types fall back to a plain string.
    """
    normalized = normalize_xsd_type(xsd_type)
    if normalized is None:
        return {"type": "string"}
    return dict(XSD_TO_JSON_TYPE[normalized])


def get_xsd_type(json_type: str | None, json_format: str | None = None) -> str:
    """
    Get the canonical XSD datatype for a JSON Schema type and format.

    Args:
        json_type: JSON Schema type (e.g., "integer")
        json_format: Optional JSON Schema format (e.g., "date")

    Returns:
        XSD datatype (e.g., "xs:integer")
    """
    if json_format and json_format in JSON_FORMAT_TO_XSD:
        return JSON_FORMAT_TO_XSD[json_format]
    if json_type is None:
        return "xs:string"
    return JSON_TYPE_TO_XSD.get(json_type, "xs:string")


def is_canonical(xsd_type: str, fragment: dict[str, str]) -> bool:
    """Check whether an XSD type is what the JSON fragment maps back to."""
    return get_xsd_type(fragment.get("type"), fragment.get("format")) == xsd_type


def get_value_type_name(xsd_type: str | None) -> str:
    """
    Get the metamodel value type name for an XSD datatype.

    Examples:
        "xs:string" -> "String"
        "xs:positiveInteger" -> "PositiveInteger"
    """
    normalized = normalize_xsd_type(xsd_type) or "xs:string"
    local_name = normalized[3:]
    return local_name[0].upper() + local_name[1:]
