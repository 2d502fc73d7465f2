"""
Tests for the data model endpoints.
"""

import json

import pytest

BASE = "/designer/api/ttd/test-app/datamodels"

SKJEMA_XSD = """<?xml version="1.0" encoding="utf-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema" elementFormDefault="qualified">
  <xs:element name="melding" type="Skjema" />
  <xs:complexType name="Skjema">
    <xs:sequence>
      <xs:element name="navn" type="xs:string" />
      <xs:element name="alder" type="xs:positiveInteger" minOccurs="0" />
    </xs:sequence>
  </xs:complexType>
</xs:schema>
"""


SOKNAD_XSD = """<?xml version="1.0" encoding="ISO-8859-1"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema" elementFormDefault="qualified">
  <xs:element name="soknad" type="Soknad" />
  <xs:complexType name="Soknad">
    <xs:annotation>
      <xs:documentation>Søknad om støtte</xs:documentation>
    </xs:annotation>
    <xs:sequence>
      <xs:element name="navn" type="xs:string" />
    </xs:sequence>
  </xs:complexType>
</xs:schema>
""".encode("iso-8859-1")

NO_ROOT_XSD = b"""<?xml version="1.0" encoding="utf-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">
  <xs:simpleType name="Kode">
    <xs:restriction base="xs:string" />
  </xs:simpleType>
</xs:schema>
"""

def _data_types(app_path):
    path = app_path / "App" / "config" / "applicationmetadata.json"
    return json.loads(path.read_text(encoding="utf-8"))["dataTypes"]


class TestPutDatamodel:
    """Tests for saving a JSON Schema data model."""

    @pytest.mark.parametrize(
        "model_path",
        [
            "testModel.schema.json",
            "App/models/testModel.schema.json",
            "/App/models/testModel.schema.json",
            "App%2Fmodels%2FtestModel.schema.json",
        ],
    )
    def test_writes_all_model_files(self, client, app_path, minimal_schema, model_path):
        response = client.put(
            f"{BASE}?modelPath={model_path}", content=json.dumps(minimal_schema)
        )

        assert response.status_code == 204
        models = app_path / "App" / "models"
        for suffix in (".schema.json", ".xsd", ".metadata.json", ".cs"):
            assert (models / f"testModel{suffix}").is_file()

        assert json.loads((models / "testModel.schema.json").read_text()) == minimal_schema
        metadata = json.loads((models / "testModel.metadata.json").read_text())
        assert metadata["Org"] == "ttd"
        assert set(metadata["Elements"]) == {"root", "root.keyword"}
        assert "<xs:complexType name=\"rootType\">" in (models / "testModel.xsd").read_text()

    @pytest.mark.parametrize(
        "query",
        [
            {"modelPath": "App/models/testModel.schema.json"},
            {"modelPath": "App%2Fmodels%2FtestModel.schema.json"},
        ],
    )
    def test_encoded_model_path(self, client, app_path, minimal_schema, query):
        """Query values are URL-encoded on the wire, once or twice."""
        response = client.put(BASE, params=query, content=json.dumps(minimal_schema))

        assert response.status_code == 204
        assert (app_path / "App" / "models" / "testModel.schema.json").is_file()
        assert not (app_path / "App" / "models" / "App").exists()

    def test_registers_data_type(self, client, app_path, minimal_schema):
        client.put(f"{BASE}?modelPath=testModel.schema.json", content=json.dumps(minimal_schema))

        data_type = next(d for d in _data_types(app_path) if d["id"] == "testModel")
        assert data_type["appLogic"]["classRef"] == "Altinn.App.Models.rootType"
        assert data_type["allowedContentTypes"] == ["application/xml"]

    def test_invalid_json(self, client, app_path):
        response = client.put(f"{BASE}?modelPath=testModel.schema.json", content="{not json")
        assert response.status_code == 400
        assert not (app_path / "App" / "models" / "testModel.schema.json").exists()

    def test_invalid_json_schema(self, client, app_path):
        response = client.put(
            f"{BASE}?modelPath=testModel.schema.json",
            content=json.dumps({"properties": {"a": {"type": 12}}}),
        )
        assert response.status_code == 400

    def test_schema_without_root(self, client, app_path):
        response = client.put(
            f"{BASE}?modelPath=testModel.schema.json", content=json.dumps({"type": "object"})
        )
        assert response.status_code == 400

    def test_missing_model_path(self, client, app_path, minimal_schema):
        response = client.put(BASE, content=json.dumps(minimal_schema))
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid model name value."

    def test_legacy_update(self, client, app_path, minimal_schema):
        response = client.put(
            f"{BASE}/UpdateDatamodel?modelName=legacy", content=json.dumps(minimal_schema)
        )
        assert response.status_code == 204
        assert (app_path / "App" / "models" / "legacy.cs").is_file()


class TestGetDatamodels:
    """Tests for reading data models."""

    def test_list_schema_files(self, client, app_path, minimal_schema):
        client.put(f"{BASE}?modelPath=b.schema.json", content=json.dumps(minimal_schema))
        client.put(f"{BASE}?modelPath=a.schema.json", content=json.dumps(minimal_schema))

        response = client.get(BASE)

        assert response.status_code == 200
        files = response.json()
        assert [f["fileName"] for f in files] == ["a.schema.json", "b.schema.json"]
        assert files[0]["repositoryRelativeUrl"] == "/App/models/a.schema.json"
        assert files[0]["fileType"] == ".json"

    def test_get_schema(self, client, app_path, minimal_schema):
        client.put(f"{BASE}?modelPath=testModel.schema.json", content=json.dumps(minimal_schema))

        response = client.get(f"{BASE}/App/models/testModel.schema.json")

        assert response.status_code == 200
        assert response.json() == minimal_schema

    def test_get_missing_schema(self, client, app_path):
        response = client.get(f"{BASE}/App/models/missing.schema.json")
        assert response.status_code == 404

    def test_legacy_get_converts_xsd(self, client, app_path):
        (app_path / "App" / "models" / "skjema.xsd").write_text(SKJEMA_XSD, encoding="utf-8")

        response = client.get(f"{BASE}/GetDatamodel?modelName=skjema")

        assert response.status_code == 200
        schema = response.json()
        assert schema["properties"]["melding"] == {"$ref": "#/$defs/Skjema"}
        assert schema["$defs"]["Skjema"]["required"] == ["navn"]

    def test_legacy_get_missing(self, client, app_path):
        response = client.get(f"{BASE}/GetDatamodel?modelName=missing")
        assert response.status_code == 404


class TestDeleteDatamodel:
    """Tests for deleting data models."""

    def test_delete_removes_files_and_data_type(self, client, app_path, minimal_schema):
        client.put(f"{BASE}?modelPath=testModel.schema.json", content=json.dumps(minimal_schema))

        response = client.delete(f"{BASE}?modelPath=App/models/testModel.schema.json")

        assert response.status_code == 204
        assert list((app_path / "App" / "models").iterdir()) == []
        assert all(d["id"] != "testModel" for d in _data_types(app_path))

    def test_delete_missing(self, client, app_path):
        response = client.delete(f"{BASE}?modelPath=missing.schema.json")
        assert response.status_code == 404

    def test_legacy_delete_requires_data_type(self, client, app_path):
        response = client.delete(f"{BASE}/DeleteDatamodel?modelName=missing")
        assert response.status_code == 400

    def test_legacy_delete(self, client, app_path, minimal_schema):
        client.put(f"{BASE}?modelPath=testModel.schema.json", content=json.dumps(minimal_schema))

        response = client.delete(f"{BASE}/DeleteDatamodel?modelName=testModel")

        assert response.status_code == 200
        assert not (app_path / "App" / "models" / "testModel.schema.json").exists()


class TestUploadDatamodel:
    """Tests for uploading XSD data models."""

    def test_upload_xsd(self, client, app_path):
        response = client.post(
            f"{BASE}/upload",
            files={"thefile": ("skjema.xsd", SKJEMA_XSD.encode("utf-8"), "text/xml")},
        )

        assert response.status_code == 201
        assert response.json()["$defs"]["Skjema"]["properties"]["alder"] == {
            "type": "integer",
            "@xsdBuiltinType": "xs:positiveInteger",
        }

        models = app_path / "App" / "models"
        assert (models / "skjema.xsd").read_text(encoding="utf-8") == SKJEMA_XSD
        assert "public class Skjema" in (models / "skjema.cs").read_text()
        data_type = next(d for d in _data_types(app_path) if d["id"] == "skjema")
        assert data_type["appLogic"]["classRef"] == "Altinn.App.Models.Skjema"

    def test_upload_rejects_other_files(self, client, app_path):
        response = client.post(
            f"{BASE}/upload",
            files={"thefile": ("skjema.json", b"{}", "application/json")},
        )
        assert response.status_code == 400

    def test_upload_invalid_xml(self, client, app_path):
        response = client.post(
            f"{BASE}/upload",
            files={"thefile": ("broken.xsd", b"<xs:schema", "text/xml")},
        )
        assert response.status_code == 400

    def test_upload_latin1_xsd(self, client, app_path):
        """XSDs declared as ISO-8859-1 are converted and stored unchanged."""
        response = client.post(
            f"{BASE}/upload",
            files={"thefile": ("soknad.xsd", SOKNAD_XSD, "text/xml")},
        )

        assert response.status_code == 201
        assert response.json()["$defs"]["Soknad"]["description"] == "Søknad om støtte"
        models = app_path / "App" / "models"
        assert (models / "soknad.xsd").read_bytes() == SOKNAD_XSD
        assert (models / "soknad.schema.json").is_file()
        assert any(d["id"] == "soknad" for d in _data_types(app_path))

    def test_failed_upload_writes_nothing(self, client, app_path):
        response = client.post(
            f"{BASE}/upload",
            files={"thefile": ("kode.xsd", NO_ROOT_XSD, "text/xml")},
        )

        assert response.status_code == 400
        assert list((app_path / "App" / "models").iterdir()) == []
        assert [d["id"] for d in _data_types(app_path)] == ["ref-data-as-pdf"]

    def test_upload_too_large(self, client, settings, app_path):
        settings.max_upload_size_mb = 0

        response = client.post(
            f"{BASE}/upload",
            files={"thefile": ("skjema.xsd", SKJEMA_XSD.encode("utf-8"), "text/xml")},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "File too large. Maximum size is 0MB"
        assert not (app_path / "App" / "models" / "skjema.xsd").exists()
