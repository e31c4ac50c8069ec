"""Company account and request identity models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

BUYER_COMPANY_TYPES = frozenset({"distributor", "buyer", "customer"})


class CompanyType(str, Enum):
    """Kinds of company registered on the marketplace."""

    MANUFACTURER = "manufacturer"
    DISTRIBUTOR = "distributor"
    BUYER = "buyer"
    CUSTOMER = "customer"
    ADMIN = "admin"


class UserBase(BaseModel):
    """Base company account model."""

    userId: str = Field(..., description="Unique account identifier")
    companyName: str = Field(..., min_length=1, max_length=200)
    companyType: CompanyType
    contactPerson: Optional[str] = Field(None, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=r"^\+?1?\d{9,15}$")
    country: Optional[str] = None
    status: str = Field(default="active", pattern="^(pending|active|blocked)$")

    model_config = {"use_enum_values": True}


class UserCreate(UserBase):
    """Account creation model."""

    pass


class UserInDB(UserBase):
    """Account model as stored in database."""

    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Identity(BaseModel):
    """Caller identity resolved once at the request boundary."""

    id: str = Field(..., min_length=1)
    companyType: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_buyer(self) -> bool:
        return self.companyType in BUYER_COMPANY_TYPES or self.role in BUYER_COMPANY_TYPES

    @property
    def is_seller(self) -> bool:
        return CompanyType.MANUFACTURER.value in (self.companyType, self.role)
