"""Request and response schemas for proposal endpoints."""

from pydantic import BaseModel, Field
from typing import List

from marketplace.models.proposal import Proposal, ProposalDecision, ProposalDraft


class CreateProposalRequest(ProposalDraft):
    """Request model for submitting a proposal."""
    job_id: str = Field(..., min_length=1)


class DecideProposalRequest(BaseModel):
    """Request model for accepting or rejecting a proposal."""
    decision: ProposalDecision


class ProposalListResponse(BaseModel):
    """List of proposals."""
    proposals: List[Proposal]
    total: int
