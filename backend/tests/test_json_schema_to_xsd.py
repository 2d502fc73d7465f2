"""
Tests for JSON Schema to XSD conversion.
"""

import xml.etree.ElementTree as ET

import pytest

from designer.datamodeling import JsonSchemaToXsdConverter

NS = {"xs": "http://www.w3.org/2001/XMLSchema"}


def convert(schema: dict) -> ET.Element:
    xsd = JsonSchemaToXsdConverter().convert(schema)
    assert xsd.startswith('<?xml version="1.0" encoding="utf-8"?>')
    return ET.fromstring(xsd.split("\n", 1)[1])


def local_element(root: ET.Element, type_name: str, name: str) -> ET.Element:
    return root.find(
        f"xs:complexType[@name='{type_name}']/xs:sequence/xs:element[@name='{name}']", NS
    )


class TestJsonSchemaToXsdConverter:
    """Tests for JsonSchemaToXsdConverter."""

    def test_minimal_schema(self, minimal_schema):
        root = convert(minimal_schema)

        assert root.get("elementFormDefault") == "qualified"
        assert root.get("attributeFormDefault") == "unqualified"
        element = root.find("xs:element[@name='root']", NS)
        assert element.get("type") == "rootType"
        assert element.get("minOccurs") is None

        keyword = local_element(root, "rootType", "keyword")
        assert keyword.get("type") == "xs:string"
        assert keyword.get("minOccurs") == "0"

    def test_occurrences_and_nillable(self):
        schema = {
            "properties": {"melding": {"$ref": "#/$defs/Melding"}},
            "$defs": {
                "Melding": {
                    "type": "object",
                    "properties": {
                        "linjer": {
                            "type": "array",
                            "items": {"$ref": "#/$defs/Linje"},
                            "minItems": 1,
                        },
                        "vedlegg": {"type": "array", "items": {"type": "string"}, "maxItems": 5},
                        "kommentar": {"type": ["string", "null"]},
                        "mottaker": {"oneOf": [{"$ref": "#/$defs/Linje"}, {"type": "null"}]},
                        "dato": {"type": "string", "format": "date"},
                    },
                    "required": ["linjer", "dato"],
                },
                "Linje": {"type": "object", "properties": {"tekst": {"type": "string"}}},
            },
        }
        root = convert(schema)

        linjer = local_element(root, "Melding", "linjer")
        assert linjer.get("type") == "Linje"
        assert linjer.get("minOccurs") is None
        assert linjer.get("maxOccurs") == "unbounded"

        vedlegg = local_element(root, "Melding", "vedlegg")
        assert vedlegg.get("minOccurs") == "0"
        assert vedlegg.get("maxOccurs") == "5"

        kommentar = local_element(root, "Melding", "kommentar")
        assert kommentar.get("nillable") == "true"
        assert kommentar.get("type") == "xs:string"

        mottaker = local_element(root, "Melding", "mottaker")
        assert mottaker.get("nillable") == "true"
        assert mottaker.get("type") == "Linje"

        assert local_element(root, "Melding", "dato").get("type") == "xs:date"

    def test_simple_type_facets(self):
        schema = {
            "properties": {"belop": {"$ref": "#/$defs/Belop"}},
            "$defs": {
                "Belop": {
                    "type": "number",
                    "minimum": 0,
                    "exclusiveMaximum": 1000000,
                    "multipleOf": 0.01,
                    "@xsdTotalDigits": 9,
                },
                "Kode": {"type": "string", "enum": ["A", "B"], "pattern": "^[AB]$"},
                "Postnummer": {"type": "string", "minLength": 4, "maxLength": 4},
            },
        }
        root = convert(schema)

        restriction = root.find("xs:simpleType[@name='Belop']/xs:restriction", NS)
        assert restriction.get("base") == "xs:decimal"
        facets = {_tag(f): f.get("value") for f in restriction}
        assert facets == {
            "minInclusive": "0",
            "maxExclusive": "1000000",
            "totalDigits": "9",
            "fractionDigits": "2",
        }

        kode = root.find("xs:simpleType[@name='Kode']/xs:restriction", NS)
        assert [e.get("value") for e in kode.findall("xs:enumeration", NS)] == ["A", "B"]
        assert kode.find("xs:pattern", NS).get("value") == "[AB]"

        postnummer = root.find("xs:simpleType[@name='Postnummer']/xs:restriction", NS)
        assert postnummer.find("xs:length", NS).get("value") == "4"

    def test_attributes_and_simple_content(self):
        schema = {
            "properties": {"belop": {"$ref": "#/$defs/BelopMedValuta"}},
            "$defs": {
                "BelopMedValuta": {
                    "type": "object",
                    "properties": {
                        "value": {"type": "number", "@xsdText": True},
                        "valuta": {"type": "string", "@xsdType": "XmlAttribute"},
                    },
                    "required": ["valuta"],
                }
            },
        }
        root = convert(schema)

        extension = root.find(
            "xs:complexType[@name='BelopMedValuta']/xs:simpleContent/xs:extension", NS
        )
        assert extension.get("base") == "xs:decimal"
        attribute = extension.find("xs:attribute", NS)
        assert attribute.get("name") == "valuta"
        assert attribute.get("use") == "required"
        assert attribute.get("type") == "xs:string"

    def test_extension_and_choice(self):
        schema = {
            "properties": {"person": {"$ref": "#/$defs/Person"}},
            "$defs": {
                "Part": {"type": "object", "properties": {"id": {"type": "string"}}},
                "Person": {
                    "allOf": [
                        {"$ref": "#/$defs/Part"},
                        {
                            "type": "object",
                            "properties": {
                                "fnr": {"type": "string"},
                                "dnr": {"type": "string"},
                            },
                            "@xsdStructure": "choice",
                        },
                    ]
                },
            },
        }
        root = convert(schema)

        extension = root.find(
            "xs:complexType[@name='Person']/xs:complexContent/xs:extension", NS
        )
        assert extension.get("base") == "Part"
        choice = extension.find("xs:choice", NS)
        assert [e.get("name") for e in choice] == ["fnr", "dnr"]
        assert all(e.get("minOccurs") is None for e in choice)

    def test_namespaces_and_annotations(self):
        schema = {
            "@xsdNamespaces": {"xs": "http://www.w3.org/2001/XMLSchema", "seres": "http://seres.no/xsd/forvaltningsdata"},
            "@xsdSchemaAttributes": {"elementFormDefault": "qualified"},
            "description": "Skjema for test",
            "properties": {"root": {"$ref": "#/$defs/Root"}},
            "$defs": {
                "Root": {
                    "type": "object",
                    "description": "Rotelement",
                    "properties": {"fast": {"type": "string", "const": "1.0"}},
                }
            },
        }
        xsd = JsonSchemaToXsdConverter().convert(schema)
        root = ET.fromstring(xsd.split("\n", 1)[1])

        assert 'xmlns:seres="http://seres.no/xsd/forvaltningsdata"' in xsd
        assert root.get("attributeFormDefault") is None
        assert root.find("xs:annotation/xs:documentation", NS).text == "Skjema for test"
        assert (
            root.find("xs:complexType[@name='Root']/xs:annotation/xs:documentation", NS).text
            == "Rotelement"
        )
        assert local_element(root, "Root", "fast").get("fixed") == "1.0"

    def test_root_from_one_of_uses_message_name(self):
        schema = {
            "info": {"meldingsnavn": "melding"},
            "oneOf": [{"$ref": "#/$defs/Skjema"}],
            "$defs": {"Skjema": {"type": "object", "properties": {"a": {"type": "string"}}}},
        }
        root = convert(schema)
        assert root.find("xs:element[@name='melding']", NS).get("type") == "Skjema"

    def test_no_root_element(self):
        with pytest.raises(ValueError):
            JsonSchemaToXsdConverter().convert({"type": "object"})

    def test_unresolved_reference(self):
        with pytest.raises(ValueError, match="Unresolved reference"):
            JsonSchemaToXsdConverter().convert(
                {"properties": {"a": {"$ref": "#/$defs/Missing"}}}
            )


def _tag(element: ET.Element) -> str:
    return element.tag.rsplit("}", 1)[-1]
