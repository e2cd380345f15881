"""Request and response schemas for job endpoints."""

from pydantic import BaseModel
from typing import List

from marketplace.models.job import Job, JobDraft, JobStatus


class CreateJobRequest(JobDraft):
    """Request model for posting a new job."""


class UpdateJobStatusRequest(BaseModel):
    """Request model for completing or cancelling a job."""
    status: JobStatus


class JobListResponse(BaseModel):
    """List of jobs."""
    jobs: List[Job]
    total: int
