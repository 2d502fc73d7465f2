"""
Data model endpoints.

Lists, reads, saves, uploads and deletes the data models of an app. Saving
a JSON Schema regenerates the XSD, metadata and C# model files.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import Response

from designer.config import Settings, get_settings
from designer.dependencies import (
    get_developer,
    get_schema_model_service,
    require_read,
    require_write,
    validate_app_name,
    validate_org,
)
from designer.schemas.datamodel import AltinnCoreFile
from designer.services.schema_model import SchemaModelService
from designer.utils.file_names import XSD_SUFFIX, as_file_name, model_name_from_path

logger = logging.getLogger(__name__)

INVALID_MODEL_NAME = "Invalid model name value."

router = APIRouter(
    prefix="/designer/api/{org}/{app}/datamodels",
    tags=["datamodels"],
    dependencies=[Depends(validate_org), Depends(validate_app_name)],
)

Developer = Annotated[str, Depends(get_developer)]
SchemaModels = Annotated[SchemaModelService, Depends(get_schema_model_service)]


def _check_model_path(model_path: str | None) -> None:
    try:
        model_name_from_path(model_path or "")
    except ValueError:
        raise HTTPException(status_code=400, detail=INVALID_MODEL_NAME)


def _check_model_name(model_name: str | None) -> None:
    try:
        as_file_name(model_name)
    except ValueError:
        raise HTTPException(status_code=400, detail=INVALID_MODEL_NAME)


async def _save_schema(
    service: SchemaModelService,
    org: str,
    app: str,
    developer: str,
    model_path: str,
    request: Request,
) -> Response:
    content = await request.body()
    try:
        service.update_schema(org, app, developer, model_path, content)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Failed to save data model {model_path} for {org}/{app}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("", response_model=list[AltinnCoreFile], dependencies=[Depends(require_read)])
async def get_datamodels(
    org: str, app: str, developer: Developer, service: SchemaModels
) -> list[AltinnCoreFile]:
    """List the JSON Schema data models of the app."""
    return service.get_schema_files(org, app, developer)


@router.put("", status_code=204, dependencies=[Depends(require_write)])
async def put_datamodel(
    org: str,
    app: str,
    request: Request,
    developer: Developer,
    service: SchemaModels,
    model_path: Annotated[str | None, Query(alias="modelPath")] = None,
) -> Response:
    """
    Save a JSON Schema data model.

    The body is the JSON Schema. The XSD, metadata and C# files are
    regenerated and the model is registered as a data type.
    """
    _check_model_path(model_path)
    return await _save_schema(service, org, app, developer, model_path, request)


@router.delete("", status_code=204, dependencies=[Depends(require_write)])
async def delete_datamodel(
    org: str,
    app: str,
    developer: Developer,
    service: SchemaModels,
    model_path: Annotated[str | None, Query(alias="modelPath")] = None,
) -> Response:
    """Delete a data model with all generated files."""
    _check_model_path(model_path)
    try:
        service.delete_schema(org, app, developer, model_path)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"Failed to delete data model {model_path} for {org}/{app}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/upload", status_code=201, dependencies=[Depends(require_write)])
async def upload_datamodel(
    org: str,
    app: str,
    thefile: Annotated[UploadFile, File(...)],
    developer: Developer,
    service: SchemaModels,
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """
    Upload an XSD data model.

    The XSD is converted to a JSON Schema, which is returned.
    """
    if not thefile.filename or not thefile.filename.lower().endswith(XSD_SUFFIX):
        raise HTTPException(status_code=400, detail="Only XSD files are accepted")
    _check_model_path(thefile.filename)

    contents = await thefile.read()
    max_size = settings.max_upload_size_mb * 1024 * 1024
    if len(contents) > max_size:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size is {settings.max_upload_size_mb}MB",
        )

    try:
        json_schema = service.create_schema_from_xsd(
            org, app, developer, thefile.filename, contents
        )
        return Response(
            content=json_schema,
            status_code=status.HTTP_201_CREATED,
            media_type="application/json",
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Failed to convert uploaded {thefile.filename} for {org}/{app}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/UpdateDatamodel", status_code=204, dependencies=[Depends(require_write)])
async def update_datamodel(
    org: str,
    app: str,
    request: Request,
    developer: Developer,
    service: SchemaModels,
    model_name: Annotated[str | None, Query(alias="modelName")] = None,
) -> Response:
    """Save a JSON Schema data model by name."""
    _check_model_name(model_name)
    return await _save_schema(service, org, app, developer, model_name, request)


@router.get("/GetDatamodel", dependencies=[Depends(require_read)])
async def get_datamodel_by_name(
    org: str,
    app: str,
    developer: Developer,
    service: SchemaModels,
    model_name: Annotated[str | None, Query(alias="modelName")] = None,
) -> Response:
    """Get a data model by name, converting its XSD if it has no JSON Schema."""
    _check_model_name(model_name)
    try:
        content = service.get_schema_or_convert_xsd(org, app, developer, model_name)
        return Response(content=content, media_type="application/json")
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Data model '{model_name}' not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Failed to get data model {model_name} for {org}/{app}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/DeleteDatamodel", dependencies=[Depends(require_write)])
async def delete_datamodel_by_name(
    org: str,
    app: str,
    developer: Developer,
    service: SchemaModels,
    model_name: Annotated[str | None, Query(alias="modelName")] = None,
) -> Response:
    """Delete a data model that is registered as a data type."""
    _check_model_name(model_name)
    if not service.delete_model_by_name(org, app, developer, model_name):
        raise HTTPException(
            status_code=400,
            detail=f"Data model '{model_name}' is not a data type of {org}/{app}",
        )
    return Response(status_code=status.HTTP_200_OK)


@router.get("/{model_path:path}", dependencies=[Depends(require_read)])
async def get_datamodel(
    org: str,
    app: str,
    model_path: str,
    developer: Developer,
    service: SchemaModels,
) -> Response:
    """Get the JSON Schema of a data model."""
    _check_model_path(model_path)
    try:
        content = service.get_schema(org, app, developer, model_path)
        return Response(content=content, media_type="application/json")
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Data model '{model_path}' not found")
    except Exception as e:
        logger.exception(f"Failed to get data model {model_path} for {org}/{app}")
        raise HTTPException(status_code=500, detail=str(e))
