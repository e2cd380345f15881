"""Pydantic models for freelancer proposals."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum


class ProposalStatus(str, Enum):
    """Status of a proposal."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class ProposalDecision(str, Enum):
    """Decision a business can take on a pending proposal."""
    ACCEPT = "accept"
    REJECT = "reject"


class DurationUnit(str, Enum):
    """Unit of an estimated duration."""
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class EstimatedDuration(BaseModel):
    """How long the freelancer expects the work to take."""
    value: float = Field(..., gt=0)
    unit: DurationUnit

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class Proposal(BaseModel):
    """Represents a freelancer's bid on a job.

    Attributes:
        id: Unique proposal identifier.
        job_id: Job the proposal was submitted against.
        freelancer_id: Freelancer who submitted it.
        cover_letter: Pitch text.
        bid_amount: Offered price, always positive.
        estimated_duration: Expected duration of the work.
        status: Current lifecycle status.
        created_at: When the proposal was submitted.
        updated_at: Last update timestamp.
    """
    id: Optional[str] = None
    job_id: str
    freelancer_id: str
    cover_letter: str
    bid_amount: float = Field(..., gt=0)
    estimated_duration: EstimatedDuration
    status: ProposalStatus = ProposalStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class ProposalDraft(BaseModel):
    """Fields a freelancer supplies when bidding on a job."""
    cover_letter: str = Field(..., min_length=1)
    bid_amount: float = Field(..., gt=0)
    estimated_duration: EstimatedDuration

    @field_validator("cover_letter")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cover letter must not be blank")
        return v

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
