"""
Text Resource Service.

Reads and mutates the per-language text resource files in
App/config/texts. Each operation is a read-modify-write of whole files.
"""

import json
import logging
from collections import Counter

from pydantic import ValidationError

from designer.schemas.text_resource import (
    TextIdMutation,
    TextResource,
    TextResourceElement,
)
from designer.services.repository import AltinnRepositoryService
from designer.utils.json_io import dump_json

logger = logging.getLogger(__name__)

APP_TITLE_IDS = ("appName", "ServiceName")


class TextResourceService:
    """Service for the text resource files of an app."""

    def __init__(self, repository: AltinnRepositoryService, default_language: str = "nb"):
        self.repository = repository
        self.default_language = default_language

    def _load(
        self, org: str, app: str, developer: str, language_code: str
    ) -> TextResource | None:
        content = self.repository.get_language_resource(org, app, developer, language_code)
        if content is None:
            return None
        try:
            return TextResource.model_validate_json(content)
        except ValidationError as e:
            raise ValueError(
                f"Failed to parse App/config/texts/resource.{language_code}.json as JSON"
            ) from e

    def _save(
        self,
        org: str,
        app: str,
        developer: str,
        language_code: str,
        resource: TextResource,
    ) -> None:
        content = dump_json(resource.model_dump(exclude_none=True), ignore_nulls=True)
        self.repository.save_language_resource(org, app, developer, language_code, content)

    def get_languages(self, org: str, app: str, developer: str) -> list[str]:
        return self.repository.get_languages(org, app, developer)

    def get_resource(self, org: str, app: str, developer: str, language_code: str) -> str:
        """Get the stored text resource JSON, or an empty string."""
        content = self.repository.get_language_resource(org, app, developer, language_code)
        if content is None or not content.strip():
            return ""
        return content

    def save_resource(
        self,
        org: str,
        app: str,
        developer: str,
        language_code: str,
        resource: TextResource,
    ) -> None:
        """
        Replace the text resource file for a language.

        Region suffixes are dropped from the language code ("nb-NO" -> "nb"),
        entries are sorted by id, and an appName/ServiceName entry also
        updates the app title in the application metadata.

        Raises:
            ValueError: If any id occurs more than once
        """
        language_code = language_code.split("-")[0]

        counts = Counter(r.id for r in resource.resources)
        duplicates = [text_id for text_id, count in counts.items() if count > 1]
        if duplicates:
            raise ValueError(
                f"Text keys must be unique. Please review keys: {', '.join(duplicates)}"
            )

        resource.resources.sort(key=lambda r: r.id)

        title_entry = next(
            (r for r in resource.resources if r.id in APP_TITLE_IDS), None
        )
        if title_entry is not None:
            self.repository.update_app_title(
                org, app, developer, language_code, title_entry.value
            )

        if resource.language is None:
            resource.language = language_code
        self._save(org, app, developer, language_code, resource)

    def update_texts_for_keys(
        self,
        org: str,
        app: str,
        developer: str,
        language_code: str,
        keys_texts: dict[str, str],
    ) -> None:
        """Update existing texts in place and append new keys."""
        resource = self._load(org, app, developer, language_code) or TextResource(
            language=language_code
        )

        for text_id, value in keys_texts.items():
            entry = resource.find(text_id)
            if entry is None:
                resource.resources.append(TextResourceElement(id=text_id, value=value))
            else:
                index = resource.resources.index(entry)
                resource.resources[index] = TextResourceElement(id=text_id, value=value)

        self._save(org, app, developer, language_code, resource)

    def update_key_names(
        self,
        org: str,
        app: str,
        developer: str,
        mutations: list[TextIdMutation],
    ) -> bool:
        """
        Rename or remove text ids in every language file.

        Returns:
            True if any file was changed.
        """
        mutation_has_occurred = False
        for language_code in self.get_languages(org, app, developer):
            resource = self._load(org, app, developer, language_code)
            if resource is None:
                continue

            for mutation in mutations:
                entry = resource.find(mutation.oldId)
                if entry is None:
                    continue

                if mutation.newId:
                    entry.id = mutation.newId
                else:
                    resource.resources.remove(entry)
                mutation_has_occurred = True

            self._save(org, app, developer, language_code, resource)

        return mutation_has_occurred

    def delete_language(
        self, org: str, app: str, developer: str, language_code: str
    ) -> bool:
        return self.repository.delete_language(org, app, developer, language_code)

    def add_text_resources(
        self,
        org: str,
        app: str,
        developer: str,
        text_resources: list[TextResource],
    ) -> None:
        """
        Merge text entries into the existing language files.

        Entries whose id already exists keep their stored value.
        """
        for incoming in text_resources:
            language_code = incoming.language or self.default_language
            resource = self._load(org, app, developer, language_code) or TextResource(
                language=language_code
            )
            for entry in incoming.resources:
                if resource.find(entry.id) is None:
                    resource.resources.append(entry)
            self._save(org, app, developer, language_code, resource)

    def get_service_name(self, org: str, app: str, developer: str) -> str:
        """
        Get the app name from the default language file.

        Raises:
            FileNotFoundError: If the default language file is missing
            ValueError: If the file is not valid JSON
        """
        content = self.repository.get_language_resource(
            org, app, developer, self.default_language
        )
        if content is None:
            raise FileNotFoundError(f"Working directory does not exist for {org}/{app}")

        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Failed to parse App/config/texts/resource.{self.default_language}.json as JSON\n{e}"
            ) from e

        if not isinstance(document, dict):
            raise ValueError(
                f"Failed to parse App/config/texts/resource.{self.default_language}.json as JSON"
            )

        for entry in document.get("resources") or []:
            if isinstance(entry, dict) and entry.get("id") in APP_TITLE_IDS:
                return entry.get("value") or ""
        return ""

    def set_service_name(
        self, org: str, app: str, developer: str, service_name: str
    ) -> None:
        """Set the appName text in the default language file."""
        resource = self._load(org, app, developer, self.default_language)
        if resource is None:
            resource = TextResource(
                language=self.default_language,
                resources=[TextResourceElement(id="appName", value=service_name)],
            )
        else:
            entry = resource.find("appName")
            if entry is None:
                resource.resources.append(
                    TextResourceElement(id="appName", value=service_name)
                )
            else:
                entry.value = service_name

        self._save(org, app, developer, self.default_language, resource)
