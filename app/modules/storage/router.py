# app/modules/storage/router.py
import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from app.core.auth.dependencies import require_roles, get_current_organization_id, ALL_ROLES
from app.config.settings import settings
from app.shared.services.s3_service import S3Service, StorageError, slugify
from .schemas import UploadResponse, SignedUrlResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def get_storage() -> S3Service:
    return S3Service()


def normalize_folder(folder: str) -> str:
    """'Tickets/Caja Chica' -> 'tickets/caja-chica'"""
    parts = [slugify(part) for part in folder.split("/")]
    parts = [part for part in parts if part]
    if not parts:
        raise HTTPException(status_code=400, detail="Carpeta inválida")
    return "/".join(parts)


def key_belongs_to_organization(key: str, organization_id: int) -> bool:
    """Las fichas de modelos son globales; el resto de uploads lleva el id de la organización"""
    if key.startswith("models/"):
        return True
    return key.startswith("uploads/") and f"/{organization_id}/" in key


@router.post("/upload", response_model=UploadResponse, status_code=201)
async def upload_file(
    folder: str = Form(..., description="Carpeta destino dentro de uploads/"),
    file: UploadFile = File(...),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    storage: S3Service = Depends(get_storage)
):
    """
    Subir un archivo a S3

    La clave queda como `uploads/{carpeta}/{organization_id}/{timestamp}-{nombre}`.
    """
    target = f"uploads/{normalize_folder(folder)}/{organization_id}"
    try:
        result = await storage.upload_file(file, target)
    except StorageError as e:
        raise HTTPException(status_code=502, detail=str(e))

    logger.info(f"📤 Archivo subido por usuario {current_user.id}: {result['key']}")
    return UploadResponse(success=True, message="Archivo subido", key=result["key"], url=result["url"])


@router.get("/signed-url", response_model=SignedUrlResponse)
async def get_signed_url(
    key: str = Query(..., min_length=1),
    expires_in: Optional[int] = Query(None, ge=60, le=604800),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    storage: S3Service = Depends(get_storage)
):
    """URL firmada temporal para leer un archivo privado"""
    if not key_belongs_to_organization(key, organization_id):
        raise HTTPException(status_code=404, detail="Archivo no encontrado")

    expiration = expires_in or settings.s3_signed_url_expiration
    try:
        url = storage.signed_url(key, expiration)
    except StorageError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return SignedUrlResponse(success=True, message="URL generada", key=key, url=url, expires_in=expiration)


@router.get("/health")
async def storage_health(storage: S3Service = Depends(get_storage)):
    return {
        "service": "storage",
        "status": "healthy" if storage.configured else "not_configured",
        "version": "1.0.0",
        "bucket": storage.bucket
    }
