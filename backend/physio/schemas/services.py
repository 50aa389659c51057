# backend/physio/schemas/services.py

from typing import Optional
from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    name: str
    price: float = Field(ge=0)
    duration_minutes: int = Field(default=60, gt=0)
    description: Optional[str] = None
    category: Optional[str] = None
    is_active: bool = True

    model_config = {"from_attributes": True}


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = None
    category: Optional[str] = None
    is_active: Optional[bool] = None

    model_config = {"from_attributes": True}


class ServiceRead(BaseModel):
    id: int
    name: str
    price: float
    duration_minutes: int
    description: Optional[str] = None
    category: Optional[str] = None
    is_active: bool

    model_config = {"from_attributes": True}
