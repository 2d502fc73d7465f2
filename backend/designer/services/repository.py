"""
Repository Service.

File access to a developer's working copy of an app repository:
{repository_location}/{developer}/{org}/{app}/. Git itself (clone, commit,
push) is handled elsewhere; this service only reads and writes files.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from designer.utils.file_names import as_path_segment
from designer.utils.json_io import dump_json

logger = logging.getLogger(__name__)

TEXTS_DIRECTORY = "App/config/texts"
APPLICATION_METADATA_PATH = "App/config/applicationmetadata.json"

_RESOURCE_FILE_PATTERN = re.compile(r"^resource\.([A-Za-z0-9-]+)\.json$")


def resource_file_name(language_code: str) -> str:
    """File name of the text resource file for a language."""
    return f"resource.{language_code}.json"


class AltinnRepositoryService:
    """
    Service for file I/O inside app working copies.

    Every relative path is resolved against the app directory and may not
    escape it.
    """

    def __init__(self, repository_location: Path):
        self.repository_location = Path(repository_location)

    def get_app_path(self, org: str, app: str, developer: str) -> Path:
        """
        Get the root directory of a developer's working copy.

        Raises:
            ValueError: If developer, org or app is not a plain directory name
        """
        return (
            self.repository_location
            / as_path_segment(developer, "developer")
            / as_path_segment(org, "organisation")
            / as_path_segment(app, "app name")
        )

    def _resolve(self, org: str, app: str, developer: str, relative_path: str) -> Path:
        root = self.repository_location.resolve()
        app_path = self.get_app_path(org, app, developer).resolve()
        if root not in app_path.parents:
            raise ValueError(f"Working copy for {org}/{app} is outside the repository location")
        target = (app_path / relative_path.lstrip("/")).resolve()
        if target != app_path and app_path not in target.parents:
            raise ValueError(f"Path '{relative_path}' is outside the repository")
        return target

    def file_exists(self, org: str, app: str, developer: str, relative_path: str) -> bool:
        return self._resolve(org, app, developer, relative_path).is_file()

    def read_text(self, org: str, app: str, developer: str, relative_path: str) -> str:
        """
        Read a file from the working copy.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = self._resolve(org, app, developer, relative_path)
        logger.debug(f"Reading {path}")
        return path.read_text(encoding="utf-8-sig")

    def read_bytes(self, org: str, app: str, developer: str, relative_path: str) -> bytes:
        """Read a file from the working copy without decoding it."""
        path = self._resolve(org, app, developer, relative_path)
        logger.debug(f"Reading {path}")
        return path.read_bytes()

    def write_text(
        self, org: str, app: str, developer: str, relative_path: str, content: str
    ) -> Path:
        """Write a file to the working copy, creating directories as needed."""
        path = self._resolve(org, app, developer, relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info(f"Wrote {relative_path} for {org}/{app} ({developer})")
        return path

    def write_bytes(
        self, org: str, app: str, developer: str, relative_path: str, content: bytes
    ) -> Path:
        """Write a file to the working copy unchanged."""
        path = self._resolve(org, app, developer, relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        logger.info(f"Wrote {relative_path} for {org}/{app} ({developer})")
        return path

    def delete_file(self, org: str, app: str, developer: str, relative_path: str) -> bool:
        """
        Delete a file from the working copy.

        Returns:
            True if the file existed and was removed.
        """
        path = self._resolve(org, app, developer, relative_path)
        if not path.is_file():
            return False
        path.unlink()
        logger.info(f"Deleted {relative_path} for {org}/{app} ({developer})")
        return True

    def list_files(
        self, org: str, app: str, developer: str, relative_dir: str, pattern: str
    ) -> list[tuple[str, datetime]]:
        """
        List files matching a glob pattern in a directory.

        Returns:
            Sorted list of (relative path, last modified) tuples.
        """
        directory = self._resolve(org, app, developer, relative_dir)
        if not directory.is_dir():
            return []

        app_path = self.get_app_path(org, app, developer).resolve()
        files = []
        for path in sorted(directory.glob(pattern)):
            if path.is_file():
                files.append(
                    (
                        path.relative_to(app_path).as_posix(),
                        datetime.fromtimestamp(path.stat().st_mtime),
                    )
                )
        return files

    # Text resources

    def get_languages(self, org: str, app: str, developer: str) -> list[str]:
        """Get language codes that have a text resource file."""
        languages = []
        for relative_path, _ in self.list_files(
            org, app, developer, TEXTS_DIRECTORY, "resource.*.json"
        ):
            match = _RESOURCE_FILE_PATTERN.match(Path(relative_path).name)
            if match:
                languages.append(match.group(1))
        return sorted(languages)

    def get_language_resource(
        self, org: str, app: str, developer: str, language_code: str
    ) -> str | None:
        """Get the raw text resource JSON for a language, or None."""
        relative_path = f"{TEXTS_DIRECTORY}/{resource_file_name(language_code)}"
        if not self.file_exists(org, app, developer, relative_path):
            return None
        return self.read_text(org, app, developer, relative_path)

    def save_language_resource(
        self, org: str, app: str, developer: str, language_code: str, content: str
    ) -> None:
        relative_path = f"{TEXTS_DIRECTORY}/{resource_file_name(language_code)}"
        self.write_text(org, app, developer, relative_path, content)

    def delete_language(
        self, org: str, app: str, developer: str, language_code: str
    ) -> bool:
        relative_path = f"{TEXTS_DIRECTORY}/{resource_file_name(language_code)}"
        return self.delete_file(org, app, developer, relative_path)

    # Application metadata

    def get_application_metadata(
        self, org: str, app: str, developer: str
    ) -> dict[str, Any]:
        """
        Get applicationmetadata.json as a dict.

        A missing file yields a minimal document for the app.
        """
        if not self.file_exists(org, app, developer, APPLICATION_METADATA_PATH):
            return {"id": f"{org}/{app}", "org": org, "title": {}, "dataTypes": []}

        content = self.read_text(org, app, developer, APPLICATION_METADATA_PATH)
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse {APPLICATION_METADATA_PATH}: {e}") from e

    def save_application_metadata(
        self, org: str, app: str, developer: str, metadata: dict[str, Any]
    ) -> None:
        self.write_text(
            org, app, developer, APPLICATION_METADATA_PATH, dump_json(metadata)
        )

    def update_app_title(
        self, org: str, app: str, developer: str, language_code: str, title: str
    ) -> None:
        """Set the app title for a language in the application metadata."""
        metadata = self.get_application_metadata(org, app, developer)
        titles = metadata.get("title") or {}
        titles[language_code] = title
        metadata["title"] = titles
        self.save_application_metadata(org, app, developer, metadata)

    def update_application_with_app_logic_model(
        self, org: str, app: str, developer: str, model_name: str, class_ref: str
    ) -> None:
        """Add or update the data type backed by a data model class."""
        metadata = self.get_application_metadata(org, app, developer)
        data_types = metadata.setdefault("dataTypes", [])

        data_type = next((d for d in data_types if d.get("id") == model_name), None)
        if data_type is None:
            data_type = {
                "id": model_name,
                "allowedContentTypes": ["application/xml"],
                "appLogic": {},
                "taskId": "Task_1",
                "maxCount": 1,
                "minCount": 1,
            }
            data_types.append(data_type)

        app_logic = data_type.get("appLogic") or {}
        app_logic.setdefault("autoCreate", True)
        app_logic["classRef"] = class_ref
        data_type["appLogic"] = app_logic

        self.save_application_metadata(org, app, developer, metadata)

    def delete_metadata_for_attachment(
        self, org: str, app: str, developer: str, model_name: str
    ) -> bool:
        """
        Remove a data type from the application metadata.

        Returns:
            True if the data type existed.
        """
        metadata = self.get_application_metadata(org, app, developer)
        data_types = metadata.get("dataTypes", [])
        remaining = [d for d in data_types if d.get("id") != model_name]
        if len(remaining) == len(data_types):
            return False

        metadata["dataTypes"] = remaining
        self.save_application_metadata(org, app, developer, metadata)
        return True
