# socdash/api/v1/schemas/inventory.py
import ipaddress
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from socdash.db.models.enums import AssetType, AssetCriticality


class AssetCreate(BaseModel):
    """Schema for registering an asset"""
    name: str = Field(..., min_length=1, max_length=255)
    ip_address: Optional[str] = Field(None, max_length=45, description="IPv4 or IPv6 address")
    asset_type: AssetType
    operating_system: Optional[str] = Field(None, max_length=255)
    criticality: AssetCriticality
    owner: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)

    @field_validator('ip_address')
    @classmethod
    def validate_ip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        ipaddress.ip_address(v)
        return v


class AssetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    ip_address: Optional[str] = None
    asset_type: AssetType
    operating_system: Optional[str] = None
    criticality: AssetCriticality
    owner: Optional[str] = None
    location: Optional[str] = None
    last_seen: Optional[datetime] = None
    vulnerability_count: int
    created_at: datetime
    updated_at: datetime


class AssetFilter(BaseModel):
    """Inventory predicates, AND-combined; active assets only"""
    asset_type: Optional[AssetType] = None
    criticality: Optional[AssetCriticality] = None
    owner: Optional[str] = Field(None, description="Substring of the owner")
    search: Optional[str] = Field(None, description="Substring of name, ip_address or operating_system")


class PlaybookCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    incident_type: Optional[str] = Field(None, max_length=255)
    steps: List[str] = Field(default_factory=list, description="Ordered response steps")


class PlaybookResponse(BaseModel):
    """Active playbook with the username of its author"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    incident_type: Optional[str] = None
    steps: List[str]
    created_by: Optional[int] = None
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ComplianceFrameworkCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    total_controls: int = Field(0, ge=0)
    passed_controls: int = Field(0, ge=0)
    failed_controls: int = Field(0, ge=0)


class ComplianceFrameworkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    total_controls: int
    passed_controls: int
    failed_controls: int
    compliance_percentage: float
    last_assessment: datetime
