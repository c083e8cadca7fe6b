# app/shared/services/s3_service.py
import re
import unicodedata
import logging
from datetime import datetime
from typing import Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile, HTTPException

from app.config.settings import settings

logger = logging.getLogger(__name__)

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "csv": "text/csv",
    "txt": "text/plain",
    "json": "application/json",
}


class StorageError(RuntimeError):
    pass


def slugify(value: str) -> str:
    """Convertir un texto a slug seguro para claves S3"""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    normalized = re.sub(r"[^a-zA-Z0-9]+", "-", normalized.lower())
    return normalized.strip("-")


def get_mime_type(filename: str) -> str:
    """Tipo MIME por extensión (octet-stream si no se reconoce)"""
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return MIME_TYPES.get(extension, "application/octet-stream")


def timestamped_filename(filename: str) -> str:
    """nombre-original.ext -> {timestamp}-nombre-original.ext"""
    if "." in filename:
        name, extension = filename.rsplit(".", 1)
        safe = f"{slugify(name) or 'archivo'}.{extension.lower()}"
    else:
        safe = slugify(filename) or "archivo"
    return f"{int(datetime.now().timestamp() * 1000)}-{safe}"


class S3Service:
    """Servicio de almacenamiento de archivos en S3 (o compatible)"""

    def __init__(self):
        self.bucket = settings.AWS_BUCKET_NAME
        self.region = settings.AWS_REGION
        self.configured = settings.s3_configured
        if not self.configured:
            logger.warning("⚠️ S3 no está completamente configurado")

    def _client(self):
        if not self.configured:
            raise StorageError("S3 no está configurado (AWS_BUCKET_NAME / credenciales)")
        return boto3.client(
            "s3",
            region_name=self.region,
            endpoint_url=settings.AWS_ENDPOINT_URL or None,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        )

    def public_url(self, key: str) -> str:
        if settings.AWS_ENDPOINT_URL:
            return f"{settings.AWS_ENDPOINT_URL.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload_bytes(self, data: bytes, key: str, content_type: Optional[str] = None) -> Dict[str, str]:
        """
        Subir bytes a S3

        Returns:
            dict con key y url pública
        """
        content_type = content_type or get_mime_type(key)
        try:
            logger.info(f"📤 Subiendo archivo a S3: {key}")
            self._client().put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"❌ Error subiendo {key} a S3: {e}")
            raise StorageError(f"Error subiendo archivo a S3: {str(e)}") from e

        logger.info(f"✅ Archivo subido: {key}")
        return {"key": key, "url": self.public_url(key)}

    async def upload_file(self, file: UploadFile, folder: str) -> Dict[str, str]:
        """Subir un UploadFile con nombre timestamped dentro de folder"""
        if not file or not file.filename:
            raise HTTPException(status_code=400, detail="Archivo requerido")

        await file.seek(0)
        content = await file.read()
        if len(content) > settings.max_upload_size:
            raise HTTPException(
                status_code=400,
                detail=f"El archivo no debe superar {settings.max_upload_size // (1024*1024)}MB"
            )

        key = f"{folder.strip('/')}/{timestamped_filename(file.filename)}"
        content_type = file.content_type or get_mime_type(file.filename)
        return self.upload_bytes(content, key, content_type)

    def delete(self, key: str) -> bool:
        try:
            self._client().delete_object(Bucket=self.bucket, Key=key)
            logger.info(f"🗑️ Archivo eliminado de S3: {key}")
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"❌ Error eliminando {key} de S3: {e}")
            raise StorageError(f"Error eliminando archivo de S3: {str(e)}") from e

    def signed_url(self, key: str, expires_in: Optional[int] = None) -> str:
        """URL firmada temporal de lectura"""
        try:
            return self._client().generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in or settings.s3_signed_url_expiration,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"❌ Error generando URL firmada para {key}: {e}")
            raise StorageError(f"Error generando URL firmada: {str(e)}") from e
