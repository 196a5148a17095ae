"""Deal schemas for request/response validation."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.enums import DealStage
from app.services.pipeline.ordering import DropEdge

# deals.position is a 32-bit INTEGER column
POSITION_MIN = -(2**31)
POSITION_MAX = 2**31 - 1


class DealCreate(BaseModel):
    """Schema for creating a deal. Position defaults to the end of the stage."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    value: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    stage: DealStage = DealStage.lead
    position: Optional[int] = Field(None, ge=POSITION_MIN, le=POSITION_MAX)
    probability: Optional[int] = Field(None, ge=0, le=100)
    close_date: Optional[date] = None
    assigned_to_id: Optional[int] = None
    company_id: Optional[int] = None
    contact_id: Optional[int] = None
    notes: Optional[str] = None


class DealUpdate(BaseModel):
    """Schema for updating a deal. All fields optional; only sent fields change."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    value: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    stage: Optional[DealStage] = None
    position: Optional[int] = Field(None, ge=POSITION_MIN, le=POSITION_MAX)
    probability: Optional[int] = Field(None, ge=0, le=100)
    close_date: Optional[date] = None
    assigned_to_id: Optional[int] = None
    company_id: Optional[int] = None
    contact_id: Optional[int] = None
    notes: Optional[str] = None


class DealMove(BaseModel):
    """Drag-and-drop: new stage plus either a client-computed position or a drop target.

    With neither ``position`` nor ``target_id`` the deal goes to the end of the stage.
    """

    model_config = ConfigDict(extra="forbid")

    stage: DealStage
    position: Optional[float] = Field(
        None, allow_inf_nan=False, ge=POSITION_MIN, le=POSITION_MAX
    )
    target_id: Optional[int] = None
    edge: Optional[DropEdge] = None

    @model_validator(mode="after")
    def _check_drop_target(self) -> "DealMove":
        if self.position is not None and self.target_id is not None:
            raise ValueError("send either position or target_id, not both")
        if (self.target_id is None) != (self.edge is None):
            raise ValueError("target_id and edge must be sent together")
        return self


class DealRead(BaseModel):
    """Schema for reading a deal (response)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    workspace_id: uuid.UUID
    name: str
    value: Optional[Decimal] = None
    stage: str
    position: int
    probability: Optional[int] = None
    close_date: Optional[date] = None
    owner_id: int
    assigned_to_id: Optional[int] = None
    company_id: Optional[int] = None
    contact_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class DealList(BaseModel):
    items: list[DealRead]
    total: int


class PipelineStage(BaseModel):
    stage: str
    deals: list[DealRead]
    total_value: Decimal


class PipelineResponse(BaseModel):
    """Board view: every stage in board order with its deals in position order."""

    stages: list[PipelineStage]


class DealTransitionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    deal_id: int
    from_stage: Optional[str] = None
    to_stage: str
    from_position: Optional[int] = None
    to_position: int
    value: Optional[Decimal] = None
    probability: Optional[int] = None
    changed_by_id: Optional[int] = None
    created_at: datetime
