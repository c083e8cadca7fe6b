# app/modules/configuration/model_files.py
import io
import logging
from typing import List, Optional, Tuple

from fastapi import HTTPException, UploadFile
from PIL import Image, UnidentifiedImageError
from sqlalchemy.orm import Session

from app.shared.database.models import Model, ModelFile
from app.shared.services.s3_service import S3Service, StorageError, slugify
from .schemas import ModelFileItem, ModelFilesResponse

logger = logging.getLogger(__name__)

LARGE_WIDTH = 800
SMALL_WIDTH = 400


def resize_to_webp(content: bytes, width: int, quality: int) -> bytes:
    """Re-codificar imagen a webp con ancho máximo (sin agrandar)"""
    with Image.open(io.BytesIO(content)) as image:
        image = image.convert("RGBA") if image.mode in ("P", "LA") else image
        if image.width > width:
            height = round(image.height * width / image.width)
            image = image.resize((width, height), Image.LANCZOS)
        output = io.BytesIO()
        image.save(output, format="WEBP", quality=quality)
        return output.getvalue()


def is_pdf(file: UploadFile) -> bool:
    name = (file.filename or "").lower()
    return file.content_type == "application/pdf" or (
        name.endswith(".pdf") and file.content_type == "application/octet-stream"
    )


class ModelFilesService:
    """Imágenes y fichas técnicas de modelos globales en S3 (root)"""

    def __init__(self, db: Session, storage: Optional[S3Service] = None):
        self.db = db
        self.storage = storage or S3Service()

    def _get_model(self, model_id: int) -> Model:
        model = self.db.query(Model).filter(Model.id == model_id).first()
        if not model:
            raise HTTPException(status_code=404, detail="Modelo no encontrado")
        return model

    def _base_path(self, model: Model) -> str:
        return f"models/{slugify(model.brand.name)}/{slugify(model.name)}"

    def _store_image(self, base_path: str, file: UploadFile, content: bytes) -> Tuple[dict, Optional[dict]]:
        file_name = slugify((file.filename or "imagen").rsplit(".", 1)[0]) or "imagen"
        try:
            large = resize_to_webp(content, LARGE_WIDTH, 80)
            small = resize_to_webp(content, SMALL_WIDTH, 75)
        except UnidentifiedImageError:
            raise HTTPException(status_code=400, detail=f"El archivo {file.filename} no es una imagen válida")

        large_result = self.storage.upload_bytes(large, f"{base_path}/images/{file_name}_800.webp", "image/webp")
        try:
            small_result = self.storage.upload_bytes(small, f"{base_path}/images/{file_name}_400.webp", "image/webp")
        except StorageError as e:
            # la versión chica es opcional
            logger.warning(f"⚠️ No se pudo subir la miniatura de {file.filename}: {e}")
            small_result = None
        return large_result, small_result

    async def upload_files(self, model_id: int, files: List[UploadFile]) -> ModelFilesResponse:
        model = self._get_model(model_id)
        base_path = self._base_path(model)
        created = []

        try:
            for file in files:
                if not file or not file.filename:
                    continue
                content = await file.read()

                if (file.content_type or "").startswith("image/"):
                    large, small = self._store_image(base_path, file, content)
                    record = ModelFile(
                        model_id=model.id,
                        name=file.filename,
                        type="image",
                        s3_key=large["key"],
                        s3_key_small=small["key"] if small else None,
                        url=large["url"],
                        size_bytes=len(content)
                    )
                elif is_pdf(file):
                    result = self.storage.upload_bytes(content, f"{base_path}/specs/{file.filename}", "application/pdf")
                    record = ModelFile(
                        model_id=model.id,
                        name=file.filename,
                        type="spec",
                        s3_key=result["key"],
                        url=result["url"],
                        size_bytes=len(content)
                    )
                else:
                    raise HTTPException(
                        status_code=400,
                        detail=f"Tipo de archivo no permitido: {file.filename}"
                    )

                self.db.add(record)
                created.append(record)

            self.db.commit()
        except StorageError as e:
            self.db.rollback()
            raise HTTPException(status_code=502, detail=str(e))

        for record in created:
            self.db.refresh(record)

        logger.info(f"✅ {len(created)} archivos subidos para modelo #{model.id}")
        return ModelFilesResponse(
            success=True,
            message=f"{len(created)} archivos subidos",
            files=[ModelFileItem.model_validate(f) for f in created]
        )

    async def get_files(self, model_id: int) -> ModelFilesResponse:
        self._get_model(model_id)
        files = self.db.query(ModelFile).filter(ModelFile.model_id == model_id).order_by(ModelFile.id.asc()).all()
        return ModelFilesResponse(
            success=True,
            message=f"{len(files)} archivos",
            files=[ModelFileItem.model_validate(f) for f in files]
        )

    async def delete_file(self, file_id: int) -> ModelFilesResponse:
        record = self.db.query(ModelFile).filter(ModelFile.id == file_id).first()
        if not record:
            raise HTTPException(status_code=404, detail="Archivo no encontrado")

        try:
            self.storage.delete(record.s3_key)
            if record.type == "image" and record.s3_key_small:
                self.storage.delete(record.s3_key_small)
        except StorageError as e:
            raise HTTPException(status_code=502, detail=str(e))

        model_id = record.model_id
        self.db.delete(record)
        self.db.commit()
        return await self.get_files(model_id)
