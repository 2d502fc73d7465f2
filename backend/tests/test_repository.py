"""
Tests for the working copy file service.
"""

import json

import pytest

from designer.services.repository import AltinnRepositoryService

ORG = "ttd"
APP = "test-app"
DEVELOPER = "testUser"


@pytest.fixture
def repository(settings, app_path) -> AltinnRepositoryService:
    return AltinnRepositoryService(settings.repository_location)


class TestAltinnRepositoryService:
    """Tests for AltinnRepositoryService."""

    def test_app_path_layout(self, repository, settings):
        """Working copies live under developer/org/app."""
        path = repository.get_app_path(ORG, APP, DEVELOPER)
        assert path == settings.repository_location / DEVELOPER / ORG / APP

    def test_write_creates_directories(self, repository, app_path):
        repository.write_text(ORG, APP, DEVELOPER, "App/ui/layouts/page.json", "{}")
        assert (app_path / "App" / "ui" / "layouts" / "page.json").read_text() == "{}"

    def test_path_outside_repository_rejected(self, repository):
        with pytest.raises(ValueError):
            repository.read_text(ORG, APP, DEVELOPER, "../other-app/secret.txt")

    @pytest.mark.parametrize(
        "developer, org",
        [("../../escaped", ORG), ("..", ORG), (DEVELOPER, ".."), (DEVELOPER, "ttd/../..")],
    )
    def test_working_copy_segments_rejected(self, repository, developer, org):
        with pytest.raises(ValueError):
            repository.write_text(org, APP, developer, "App/escaped.txt", "x")

    def test_working_copy_outside_root_rejected(self, repository, settings, tmp_path):
        """A developer directory linking out of the repository location is refused."""
        outside = tmp_path / "outside"
        (outside / ORG / APP).mkdir(parents=True)
        (settings.repository_location / "linked").symlink_to(outside, target_is_directory=True)

        with pytest.raises(ValueError, match="outside the repository location"):
            repository.write_text(ORG, APP, "linked", "App/escaped.txt", "x")
        assert not (outside / ORG / APP / "App").exists()

    def test_read_missing_file(self, repository):
        with pytest.raises(FileNotFoundError):
            repository.read_text(ORG, APP, DEVELOPER, "App/missing.json")

    def test_delete_file(self, repository, app_path):
        assert repository.delete_file(ORG, APP, DEVELOPER, "App/config/texts/resource.en.json")
        assert not (app_path / "App" / "config" / "texts" / "resource.en.json").exists()
        assert not repository.delete_file(ORG, APP, DEVELOPER, "App/config/texts/resource.en.json")

    def test_languages_sorted(self, repository):
        assert repository.get_languages(ORG, APP, DEVELOPER) == ["en", "nb"]

    def test_list_files(self, repository, app_path):
        (app_path / "App" / "models" / "b.schema.json").write_text("{}")
        (app_path / "App" / "models" / "a.schema.json").write_text("{}")
        (app_path / "App" / "models" / "a.xsd").write_text("")

        files = repository.list_files(ORG, APP, DEVELOPER, "App/models", "*.schema.json")

        assert [path for path, _ in files] == [
            "App/models/a.schema.json",
            "App/models/b.schema.json",
        ]

    def test_list_files_missing_directory(self, repository):
        assert repository.list_files(ORG, APP, DEVELOPER, "App/nothing", "*") == []

    def test_update_app_title_keeps_other_fields(self, repository, app_path):
        repository.update_app_title(ORG, APP, DEVELOPER, "en", "Test app")

        metadata = json.loads(
            (app_path / "App" / "config" / "applicationmetadata.json").read_text()
        )
        assert metadata["title"] == {"nb": "Testapp", "en": "Test app"}
        assert metadata["partyTypesAllowed"] == {"person": True}

    def test_missing_application_metadata_defaults(self, settings):
        repository = AltinnRepositoryService(settings.repository_location)
        metadata = repository.get_application_metadata("org", "no-app", DEVELOPER)
        assert metadata == {"id": "org/no-app", "org": "org", "title": {}, "dataTypes": []}

    def test_add_and_update_data_type(self, repository):
        repository.update_application_with_app_logic_model(
            ORG, APP, DEVELOPER, "skjema", "Altinn.App.Models.Skjema"
        )
        repository.update_application_with_app_logic_model(
            ORG, APP, DEVELOPER, "skjema", "Altinn.App.Models.Melding"
        )

        data_types = repository.get_application_metadata(ORG, APP, DEVELOPER)["dataTypes"]
        skjema = [d for d in data_types if d["id"] == "skjema"]
        assert len(skjema) == 1
        assert skjema[0]["appLogic"] == {
            "autoCreate": True,
            "classRef": "Altinn.App.Models.Melding",
        }
        assert skjema[0]["allowedContentTypes"] == ["application/xml"]
        assert skjema[0]["taskId"] == "Task_1"

    def test_delete_metadata_for_attachment(self, repository):
        assert repository.delete_metadata_for_attachment(ORG, APP, DEVELOPER, "ref-data-as-pdf")
        assert not repository.delete_metadata_for_attachment(ORG, APP, DEVELOPER, "ref-data-as-pdf")
        assert repository.get_application_metadata(ORG, APP, DEVELOPER)["dataTypes"] == []
