"""Pydantic models for job postings."""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum


class JobStatus(str, Enum):
    """Status of a job posting."""
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BudgetType(str, Enum):
    """How a job is paid."""
    FIXED = "fixed"
    HOURLY = "hourly"


class Budget(BaseModel):
    """Budget range offered for a job.

    Attributes:
        type: Fixed price or hourly rate.
        min: Lower bound of the range.
        max: Upper bound of the range.
    """
    type: BudgetType
    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)

    @model_validator(mode="after")
    def check_range(self) -> "Budget":
        if self.min > self.max:
            raise ValueError("budget min cannot exceed budget max")
        return self

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


def normalize_skills(skills: List[str]) -> List[str]:
    """Trim skill names and drop blanks and duplicates, keeping first-seen order."""
    seen = set()
    normalized = []
    for skill in skills:
        name = skill.strip()
        if name and name.lower() not in seen:
            seen.add(name.lower())
            normalized.append(name)
    return normalized


class Job(BaseModel):
    """Represents a job posted by a business.

    Attributes:
        id: Unique job identifier.
        title: Job title.
        description: Full description of the work.
        business_id: ID of the business account that owns this job.
        skills: Required skills.
        budget: Offered budget range.
        deadline: Optional delivery deadline.
        is_urgent: Whether the business flagged the job as urgent.
        status: Current lifecycle status.
        hired_freelancer_id: Freelancer hired through an accepted proposal.
        proposal_ids: Proposals submitted against this job, in submission order.
        created_at: When this job was created.
        updated_at: Last update timestamp.
    """
    id: Optional[str] = None
    title: str
    description: str
    business_id: str
    skills: List[str] = []
    budget: Budget
    deadline: Optional[datetime] = None
    is_urgent: bool = False
    status: JobStatus = JobStatus.OPEN
    hired_freelancer_id: Optional[str] = None
    proposal_ids: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, v: List[str]) -> List[str]:
        return normalize_skills(v)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class JobDraft(BaseModel):
    """Fields a business supplies when posting a job."""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    skills: List[str]
    budget: Budget
    deadline: Optional[datetime] = None
    is_urgent: bool = False

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, v: List[str]) -> List[str]:
        skills = normalize_skills(v)
        if not skills:
            raise ValueError("at least one skill is required")
        return skills

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class JobUpdate(BaseModel):
    """Editable fields of an open job; omitted fields stay unchanged.

    Only deadline can be cleared with null. Unknown fields are rejected.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    skills: Optional[List[str]] = None
    budget: Optional[Budget] = None
    deadline: Optional[datetime] = None
    is_urgent: Optional[bool] = None

    @field_validator("title", "description", "skills", "budget", "is_urgent", mode="before")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("must not be blank")
        return v.strip() if v is not None else v

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        skills = normalize_skills(v)
        if not skills:
            raise ValueError("at least one skill is required")
        return skills

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        extra = "forbid"
