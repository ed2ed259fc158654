"""Pydantic schemas for the execution API."""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from tradejournal.utils.constants import VALID_SIDES


class ExecutionCreate(BaseModel):
    side: str
    price: float = Field(gt=0)
    quantity: float = Field(gt=0)
    fees: float = Field(default=0.0, ge=0)
    expected_price: float | None = Field(default=None, gt=0)
    timestamp: datetime | None = None  # defaults to server time when omitted
    broker_order_id: str | None = Field(default=None, max_length=64)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("side")
    @classmethod
    def _validate_side(cls, value: str) -> str:
        side = value.strip().upper()
        if side not in VALID_SIDES:
            allowed = ", ".join(VALID_SIDES)
            raise ValueError(f"must be one of: {allowed}")
        return side


class ExecutionRead(BaseModel):
    id: int
    trade_id: int
    timestamp: datetime
    side: str
    price: float
    quantity: float
    fees: float
    expected_price: float | None
    slippage: float
    broker_order_id: str | None
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
