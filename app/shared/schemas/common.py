# app/shared/schemas/common.py
from pydantic import BaseModel, Field, PlainSerializer
from typing import Annotated
from decimal import Decimal
from datetime import datetime

# Valor especial usado por el frontend para "sin sucursal"
GENERAL_BRANCH = "__general__"

# Montos: Decimal dentro de la app, número en el JSON (como json_encoders {Decimal: float})
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

class BaseResponse(BaseModel):
    success: bool
    message: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
