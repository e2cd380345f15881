"""Pydantic models for the marketplace application."""

from marketplace.models.job import JobStatus, BudgetType, Budget, Job, JobDraft, JobUpdate, normalize_skills
from marketplace.models.proposal import (
    ProposalStatus,
    ProposalDecision,
    DurationUnit,
    EstimatedDuration,
    Proposal,
    ProposalDraft
)
from marketplace.models.user import UserRole, User, Principal

__all__ = [
    "JobStatus",
    "BudgetType",
    "Budget",
    "Job",
    "JobDraft",
    "JobUpdate",
    "normalize_skills",
    "ProposalStatus",
    "ProposalDecision",
    "DurationUnit",
    "EstimatedDuration",
    "Proposal",
    "ProposalDraft",
    "UserRole",
    "User",
    "Principal"
]
