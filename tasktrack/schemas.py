"""Pydantic schemas for the request and response bodies."""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class TaskCreate(BaseModel):
    # Presence is checked by the service so that missing fields map to 400.
    title: Optional[str] = None
    completed: Optional[bool] = None


class TaskRead(ORMModel):
    id: str
    title: str
    completed: bool


class ExpenseCreate(BaseModel):
    title: Optional[str] = None
    # JSON booleans and numeric strings are rejected, not coerced.
    amount: Optional[Union[StrictInt, StrictFloat]] = None
    category: Optional[str] = None
    date: Optional[datetime] = None


class ExpenseRead(ORMModel):
    id: str
    title: str
    amount: float
    category: str
    date: datetime


class MonthlySummary(BaseModel):
    total: float = 0
    count: int = 0


class CategorySummary(BaseModel):
    category: str
    total: float
    count: int


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Message(BaseModel):
    message: str


class ServerStatus(CamelModel):
    uptime_seconds: float = Field(..., alias="uptimeSeconds")
    started_at: datetime = Field(..., alias="startedAt")
    python_version: str = Field(..., alias="pythonVersion")


class DatabaseStatus(CamelModel):
    connected: bool
    in_memory: bool = Field(..., alias="inMemory")
    tasks: int
    expenses: int
    sample_seeded: bool = Field(..., alias="sampleSeeded")


class StatusRead(BaseModel):
    status: str = "ok"
    server: ServerStatus
    db: DatabaseStatus


__all__ = [
    "CategorySummary",
    "ExpenseCreate",
    "ExpenseRead",
    "Message",
    "MonthlySummary",
    "StatusRead",
    "TaskCreate",
    "TaskRead",
]
