from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime


class OperatorBase(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=255)
    user_name: str = Field(..., min_length=1, max_length=255)
    room: str = Field(..., min_length=1, max_length=50, description="Room the operator works in")
    desk: str = Field(..., min_length=1, max_length=50, description="Desk shown on the display")
    status: Optional[int] = 1


class OperatorCreate(OperatorBase):
    pin: str = Field(..., min_length=4, max_length=72)


class OperatorUpdate(BaseModel):
    user_name: Optional[str] = Field(None, min_length=1, max_length=255)
    room: Optional[str] = Field(None, min_length=1, max_length=50)
    desk: Optional[str] = Field(None, min_length=1, max_length=50)
    status: Optional[int] = None
    pin: Optional[str] = Field(None, min_length=4, max_length=72)

    @field_validator("user_name", "room", "desk", "status", "pin")
    @classmethod
    def not_null(cls, value):
        # Fields may be left out, but not cleared
        if value is None:
            raise ValueError("must not be null")
        return value


class OperatorResponse(OperatorBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaginatedOperatorResponse(BaseModel):
    items: List[OperatorResponse]
    total: int
    page: int
    size: int
    pages: int
