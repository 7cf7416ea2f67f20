"""Pydantic schemas for parsing payloads and serialising budgetbook data.

Clients speak camelCase (``overviewId``, ``verificationCode``); the models
accept either the alias or the attribute name and dump by alias.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .models import Currency, Theme


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ORMModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# --------------------------------------------------------------------- users


class RegistrationCreate(CamelModel):
    email: str = Field(..., min_length=3, max_length=255)
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class LoginCreate(CamelModel):
    email: str
    password: str


class VerificationCodeCreate(CamelModel):
    email: str
    verification_code: str
    thirty_days: Optional[bool] = None


class EmailCreate(CamelModel):
    email: str


class UserUpdate(CamelModel):
    email: Optional[str] = Field(None, min_length=3, max_length=255)
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    currency: Optional[Currency] = None
    theme: Optional[Theme] = None
    mobile_number: Optional[str] = Field(None, max_length=32)


class PasswordUpdate(CamelModel):
    new_password: str = Field(..., min_length=1)


class UserRead(ORMModel):
    """Safe user: credential columns are not part of this model."""

    id: int
    email: str
    username: str
    email_verified: bool
    mobile_number: Optional[str] = None
    currency: Currency
    theme: Theme


# ----------------------------------------------------------------- overviews


class OverviewCreate(CamelModel):
    user_id: int = Field(..., ge=1)
    description: Optional[str] = None
    total_budget: Optional[Decimal] = Field(None, ge=0)


class OverviewUpdate(CamelModel):
    description: Optional[str] = None
    total_budget: Optional[Decimal] = Field(None, ge=0)


class OverviewRead(ORMModel):
    id: int
    description: Optional[str] = None
    total_budget: Optional[Decimal] = None
    user_id: int


class LogbookCreate(CamelModel):
    user_id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=100)


class LogbookUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)


class LogbookRead(ORMModel):
    id: int
    name: str
    user_id: int


# ------------------------------------------------------------------- entries


class PurchaseId(ORMModel):
    id: int


class EntryParent(CamelModel):
    overview_id: Optional[int] = Field(None, ge=1)
    logbook_id: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_single_parent(self):
        if self.overview_id is not None and self.logbook_id is not None:
            raise ValueError("an entry belongs to either an overview or a logbook, not both")
        return self


class EntryCreate(EntryParent):
    name: str = Field(..., min_length=1, max_length=100)
    total_spent: Optional[Decimal] = None
    budget: Optional[Decimal] = None


class EntryUpdate(EntryParent):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    total_spent: Optional[Decimal] = None
    budget: Optional[Decimal] = None


class EntryRead(ORMModel):
    id: int
    name: str
    total_spent: Optional[Decimal] = None
    budget: Optional[Decimal] = None
    overview_id: Optional[int] = None
    logbook_id: Optional[int] = None
    purchases: List[PurchaseId] = Field(default_factory=list)


class PurchaseCreate(CamelModel):
    entry_id: int = Field(..., ge=1)
    placement: Optional[int] = Field(None, ge=1)
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    cost: Optional[Decimal] = None


class PurchaseUpdate(CamelModel):
    placement: Optional[int] = Field(None, ge=1)
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    cost: Optional[Decimal] = None


class PurchaseBulkDelete(CamelModel):
    purchase_ids: List[int]


class PurchaseRead(ORMModel):
    id: int
    placement: int
    category: Optional[str] = None
    description: Optional[str] = None
    cost: Optional[Decimal] = None
    entry_id: int


# --------------------------------------------------------------- bug reports


class BugReportCreate(CamelModel):
    user_id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)


class BugReportRead(ORMModel):
    id: int
    title: str
    description: str
    created_at: datetime
    user_id: int
