from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class ControlCommandIn(BaseModel):
    # Campos opcionales: la validación de negocio devuelve 400, no 422
    deviceId: Optional[Union[str, int]] = None
    command: Optional[str] = None
    params: Optional[Dict[str, Any]] = None


class ControlCommandOut(BaseModel):
    type: str
    target: str
    command: str
    params: Dict[str, Any] = Field(default_factory=dict)
    timestamp: int
    source: str


class ControlResult(BaseModel):
    success: bool = True
    message: str
    command: ControlCommandOut


class ErrorResult(BaseModel):
    success: bool = False
    error: str


class LatestResult(BaseModel):
    success: bool = True
    timestamp: datetime
    data: Optional[Dict[str, Any]] = None
    devices: List[Dict[str, Any]] = Field(default_factory=list)


class HistoryResult(BaseModel):
    success: bool = True
    type: str
    count: int
    data: List[Dict[str, Any]] = Field(default_factory=list)


class DevicesResult(BaseModel):
    success: bool = True
    count: int
    devices: List[Dict[str, Any]] = Field(default_factory=list)


class ConnectionsStatus(BaseModel):
    mqtt: str
    websocket: int
    http: str = "active"


class StatisticsStatus(BaseModel):
    totalMessages: int
    connectedDevices: int
    latestUpdate: Optional[Any] = None


class StatusResult(BaseModel):
    success: bool = True
    status: str = "running"
    timestamp: datetime
    uptime: float
    connections: ConnectionsStatus
    statistics: StatisticsStatus
