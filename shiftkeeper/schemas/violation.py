from pydantic import BaseModel, Field
import uuid
from datetime import datetime
from typing import Literal, Optional


class ViolationRuleCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str
    penalty_percent: int = Field(ge=1, le=100)
    auto_detectable: bool = False


class ViolationRuleUpdate(BaseModel):
    name: Optional[str] = None
    penalty_percent: Optional[int] = Field(default=None, ge=1, le=100)
    auto_detectable: Optional[bool] = None
    is_active: Optional[bool] = None


class ViolationRuleOut(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    code: str
    name: str
    penalty_percent: int
    auto_detectable: bool
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ViolationCreate(BaseModel):
    employee_id: uuid.UUID
    company_id: uuid.UUID
    rule_id: uuid.UUID
    source: Literal["manual", "auto"] = "manual"
    reason: Optional[str] = None


class ViolationOut(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    employee_id: uuid.UUID
    rule_id: uuid.UUID
    shift_id: Optional[uuid.UUID]
    source: str
    reason: Optional[str]
    penalty: int
    created_by: Optional[uuid.UUID]
    created_at: datetime

    model_config = {"from_attributes": True}
