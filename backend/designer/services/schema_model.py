"""
Schema Model Service.

Manages the data models of an app. The JSON Schema is the source of truth;
every save regenerates the XSD, the model metadata and the C# classes, and
registers the model as a data type in the application metadata.
"""

import json
import logging
from pathlib import PurePosixPath
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from designer.datamodeling import (
    CSharpModelGenerator,
    JsonSchemaToMetamodelConverter,
    JsonSchemaToXsdConverter,
    XsdToJsonSchemaConverter,
)
from designer.datamodeling.csharp import DEFAULT_NAMESPACE, to_identifier
from designer.schemas.datamodel import AltinnCoreFile
from designer.services.repository import AltinnRepositoryService
from designer.utils.file_names import (
    CSHARP_SUFFIX,
    JSON_SCHEMA_SUFFIX,
    METADATA_SUFFIX,
    MODELS_DIRECTORY,
    XSD_SUFFIX,
    as_file_name,
    model_file_path,
    model_name_from_path,
)
from designer.utils.json_io import dump_json

logger = logging.getLogger(__name__)

MODEL_ARTIFACT_SUFFIXES = (JSON_SCHEMA_SUFFIX, XSD_SUFFIX, METADATA_SUFFIX, CSHARP_SUFFIX)


def parse_json_schema(content: str | bytes) -> dict[str, Any]:
    """
    Parse and check a JSON Schema document.

    Raises:
        ValueError: If the content is not JSON or not a valid JSON Schema
    """
    try:
        schema = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e

    if not isinstance(schema, dict):
        raise ValueError("JSON Schema must be an object")

    try:
        Draft202012Validator.check_schema(schema)
    except SchemaError as e:
        raise ValueError(f"Invalid JSON Schema: {e.message}") from e
    return schema


class SchemaModelService:
    """
    Service for reading, saving, converting and deleting data models.
    """

    def __init__(self, repository: AltinnRepositoryService):
        self.repository = repository
        self.xsd_converter = JsonSchemaToXsdConverter()
        self.json_schema_converter = XsdToJsonSchemaConverter()
        self.csharp_generator = CSharpModelGenerator()

    def get_schema_files(self, org: str, app: str, developer: str) -> list[AltinnCoreFile]:
        """List the JSON Schema files of the app."""
        files = self.repository.list_files(
            org, app, developer, MODELS_DIRECTORY, f"*{JSON_SCHEMA_SUFFIX}"
        )
        return [
            AltinnCoreFile(
                fileName=PurePosixPath(path).name,
                filePath=path,
                fileType=PurePosixPath(path).suffix,
                repositoryRelativeUrl=f"/{path}",
                lastChanged=last_changed,
            )
            for path, last_changed in files
        ]

    def get_schema(self, org: str, app: str, developer: str, model_path: str) -> str:
        """
        Get the JSON Schema text of a model.

        Raises:
            FileNotFoundError: If the schema file does not exist
        """
        model_name = model_name_from_path(model_path)
        return self.repository.read_text(
            org, app, developer, model_file_path(model_name, JSON_SCHEMA_SUFFIX)
        )

    def update_schema(
        self, org: str, app: str, developer: str, model_path: str, content: str | bytes
    ) -> None:
        """
        Save a JSON Schema and regenerate the derived files.

        Raises:
            ValueError: If the model path or the schema is invalid
        """
        model_name = model_name_from_path(model_path)
        schema = parse_json_schema(content)
        self._save_model(org, app, developer, model_name, schema)

    def create_schema_from_xsd(
        self, org: str, app: str, developer: str, file_name: str, xsd: bytes
    ) -> str:
        """
        Convert an uploaded XSD to a JSON Schema and save the model.

        The uploaded XSD is stored as-is next to the generated files.

        Returns:
            The generated JSON Schema text
        """
        model_name = model_name_from_path(file_name)
        schema = self.json_schema_converter.convert(xsd)
        logger.info(f"Converted uploaded XSD {file_name} for {org}/{app}")

        return self._save_model(org, app, developer, model_name, schema, original_xsd=xsd)

    def delete_schema(self, org: str, app: str, developer: str, model_path: str) -> None:
        """
        Delete a model with all derived files and its data type.

        Raises:
            FileNotFoundError: If the schema file does not exist
        """
        model_name = model_name_from_path(model_path)
        schema_path = model_file_path(model_name, JSON_SCHEMA_SUFFIX)
        if not self.repository.file_exists(org, app, developer, schema_path):
            raise FileNotFoundError(f"Data model '{model_name}' not found")

        for suffix in MODEL_ARTIFACT_SUFFIXES:
            self.repository.delete_file(
                org, app, developer, model_file_path(model_name, suffix)
            )
        self.repository.delete_metadata_for_attachment(org, app, developer, model_name)

    def get_schema_or_convert_xsd(
        self, org: str, app: str, developer: str, model_name: str
    ) -> str:
        """
        Get a model's JSON Schema, converting its XSD when no schema exists.

        Raises:
            FileNotFoundError: If neither a schema nor an XSD exists
        """
        model_name = as_file_name(model_name)
        schema_path = model_file_path(model_name, JSON_SCHEMA_SUFFIX)
        if self.repository.file_exists(org, app, developer, schema_path):
            return self.repository.read_text(org, app, developer, schema_path)

        xsd = self.repository.read_bytes(
            org, app, developer, model_file_path(model_name, XSD_SUFFIX)
        )
        return dump_json(self.json_schema_converter.convert(xsd))

    def delete_model_by_name(
        self, org: str, app: str, developer: str, model_name: str
    ) -> bool:
        """
        Delete a model registered as a data type.

        Returns:
            False if the model is not a data type of the app.
        """
        model_name = as_file_name(model_name)
        if not self.repository.delete_metadata_for_attachment(
            org, app, developer, model_name
        ):
            return False

        for suffix in MODEL_ARTIFACT_SUFFIXES:
            self.repository.delete_file(
                org, app, developer, model_file_path(model_name, suffix)
            )
        return True

    def _save_model(
        self,
        org: str,
        app: str,
        developer: str,
        model_name: str,
        schema: dict[str, Any],
        original_xsd: bytes | None = None,
    ) -> str:
        # Nothing is written until every conversion and the metadata read succeed.
        self.repository.get_application_metadata(org, app, developer)
        metadata = JsonSchemaToMetamodelConverter(org, app).convert(schema)
        xsd = original_xsd if original_xsd is not None else self.xsd_converter.convert(schema)
        classes = self.csharp_generator.generate(metadata)
        json_schema = dump_json(schema)

        files = {
            JSON_SCHEMA_SUFFIX: json_schema,
            METADATA_SUFFIX: dump_json(metadata.model_dump(by_alias=True)),
            XSD_SUFFIX: xsd,
            CSHARP_SUFFIX: classes,
        }
        for suffix, content in files.items():
            path = model_file_path(model_name, suffix)
            if isinstance(content, bytes):
                self.repository.write_bytes(org, app, developer, path, content)
            else:
                self.repository.write_text(org, app, developer, path, content)

        root = metadata.root_element()
        class_ref = f"{DEFAULT_NAMESPACE}.{to_identifier(root.type_name or root.name)}"
        self.repository.update_application_with_app_logic_model(
            org, app, developer, model_name, class_ref
        )
        logger.info(f"Saved data model {model_name} for {org}/{app}")
        return json_schema
