"""
Text resource endpoints.

Edits the per-language text files (App/config/texts/resource.{lang}.json)
of an app in the developer's working copy.
"""

import logging
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse, Response

from designer.dependencies import (
    get_developer,
    get_text_service,
    require_read,
    require_write,
    validate_app_name,
    validate_org,
)
from designer.schemas.text_resource import (
    ServiceNameRequest,
    TextIdMutation,
    TextResource,
)
from designer.services.texts import TextResourceService

logger = logging.getLogger(__name__)

RESOURCE_SCHEMA_PATH = Path(__file__).parent.parent / "resources" / "resource-schema.json"

router = APIRouter(
    prefix="/designer/api/{org}/{app}/text",
    tags=["texts"],
    dependencies=[Depends(validate_org), Depends(validate_app_name)],
)

Developer = Annotated[str, Depends(get_developer)]
Texts = Annotated[TextResourceService, Depends(get_text_service)]


@router.get("/languages", dependencies=[Depends(require_read)])
async def get_languages(
    org: str, app: str, developer: Developer, texts: Texts
) -> list[str]:
    """List the language codes that have a text resource file."""
    return texts.get_languages(org, app, developer)


@router.get("/language/{language_code}", dependencies=[Depends(require_read)])
async def get_resource(
    org: str, app: str, language_code: str, developer: Developer, texts: Texts
) -> Response:
    """
    Get the text resource file for a language.

    Responds with an empty body when the language has no file.
    """
    try:
        content = texts.get_resource(org, app, developer, language_code)
        return Response(content=content, media_type="application/json")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Failed to read texts {language_code} for {org}/{app}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/language/add-texts", dependencies=[Depends(require_write)])
async def add_text_resources(
    org: str,
    app: str,
    text_resources: list[TextResource],
    developer: Developer,
    texts: Texts,
) -> None:
    """Add texts to the language files, keeping existing values."""
    try:
        texts.add_text_resources(org, app, developer, text_resources)
    except Exception:
        logger.exception(f"Failed to add texts for {org}/{app}")
        raise HTTPException(status_code=400, detail="Text resource could not be added.")


@router.post("/language/{language_code}", dependencies=[Depends(require_write)])
async def save_resource(
    org: str,
    app: str,
    language_code: str,
    resource: TextResource,
    developer: Developer,
    texts: Texts,
) -> str:
    """
    Replace the text resource file for a language.

    Text ids must be unique; entries are stored sorted by id.
    """
    try:
        texts.save_resource(org, app, developer, language_code, resource)
        return "Resource saved"
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Failed to save texts {language_code} for {org}/{app}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/language/{language_code}", dependencies=[Depends(require_write)])
async def update_texts_for_keys(
    org: str,
    app: str,
    language_code: str,
    keys_texts: dict[str, str],
    developer: Developer,
    texts: Texts,
) -> str:
    """Set the text of each given key, adding keys that do not exist."""
    try:
        texts.update_texts_for_keys(org, app, developer, language_code, keys_texts)
        return f"The text resource, resource.{language_code}.json, was updated."
    except Exception:
        logger.exception(f"Failed to update texts {language_code} for {org}/{app}")
        raise HTTPException(
            status_code=400,
            detail=f"The text resource, resource.{language_code}.json, could not be updated.",
        )


@router.put("/keys", dependencies=[Depends(require_write)])
async def update_key_names(
    org: str,
    app: str,
    mutations: list[TextIdMutation],
    developer: Developer,
    texts: Texts,
) -> str:
    """Rename or remove text ids across all language files."""
    try:
        changed = texts.update_key_names(org, app, developer, mutations)
    except Exception as e:
        logger.exception(f"Failed to update text ids for {org}/{app}")
        raise HTTPException(status_code=400, detail=f"The update could not be done:\n{e}")

    return "The IDs were updated." if changed else "Nothing was changed."


@router.delete("/language/{language_code}", dependencies=[Depends(require_write)])
async def delete_language(
    org: str, app: str, language_code: str, developer: Developer, texts: Texts
) -> str:
    """Delete the text resource file for a language."""
    if texts.delete_language(org, app, developer, language_code):
        return f"Resources.{language_code}.json was successfully deleted."

    raise HTTPException(
        status_code=400,
        detail=f"Resource.{language_code}.json could not be deleted.",
    )


@router.get("/json-schema", dependencies=[Depends(require_read)])
async def get_json_schema() -> Response:
    """Get the JSON Schema of text resource files."""
    return Response(
        content=RESOURCE_SCHEMA_PATH.read_text(encoding="utf-8"),
        media_type="application/json",
    )


@router.get(
    "/service-name",
    response_class=PlainTextResponse,
    dependencies=[Depends(require_read)],
)
async def get_service_name(
    org: str, app: str, developer: Developer, texts: Texts
) -> str:
    """Get the app name from the default language texts."""
    try:
        return texts.get_service_name(org, app, developer)
    except (FileNotFoundError, ValueError) as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/service-name", dependencies=[Depends(require_write)])
async def set_service_name(
    org: str,
    app: str,
    request: ServiceNameRequest,
    developer: Developer,
    texts: Texts,
) -> None:
    """Set the app name in the default language texts."""
    try:
        texts.set_service_name(org, app, developer, request.serviceName)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Failed to set service name for {org}/{app}")
        raise HTTPException(status_code=500, detail=str(e))
