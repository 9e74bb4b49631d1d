from pydantic import BaseModel, Field
from typing import Any, Optional


class PixPaymentResponse(BaseModel):
    pix_code: Optional[str] = Field(default=None, alias="pixCode")
    amount: float

    class Config:
        populate_by_name = True


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None
