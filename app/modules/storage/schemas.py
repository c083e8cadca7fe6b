# app/modules/storage/schemas.py
from app.shared.schemas.common import BaseResponse


class UploadResponse(BaseResponse):
    key: str
    url: str


class SignedUrlResponse(BaseResponse):
    key: str
    url: str
    expires_in: int
