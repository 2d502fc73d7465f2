"""
Data model conversion pipeline.

Every save of a data model regenerates all representations:
- JSON Schema (the edited source)
- XSD (for XML serialization of app data)
- ModelMetadata (metamodel used by the form designer)
- C# model classes (used by the app backend)
"""

from designer.datamodeling.csharp import CSharpModelGenerator
from designer.datamodeling.json_schema_to_xsd import JsonSchemaToXsdConverter
from designer.datamodeling.metamodel import JsonSchemaToMetamodelConverter
from designer.datamodeling.xsd_to_json_schema import XsdToJsonSchemaConverter

__all__ = [
    "CSharpModelGenerator",
    "JsonSchemaToMetamodelConverter",
    "JsonSchemaToXsdConverter",
    "XsdToJsonSchemaConverter",
]
