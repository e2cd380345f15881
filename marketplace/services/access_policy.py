"""Role and ownership rules deciding who may do what.

Pure functions of (principal role, ownership, entity). Nothing here touches
storage or HTTP, so the rules can be checked directly in unit tests.
"""

from enum import Enum
from typing import Optional

from marketplace.exceptions import ForbiddenError
from marketplace.models.job import Job
from marketplace.models.proposal import Proposal
from marketplace.models.user import Principal, UserRole


class Action(str, Enum):
    """Operations gated by the policy."""
    CREATE_JOB = "create_job"
    EDIT_JOB = "edit_job"
    DELETE_JOB = "delete_job"
    SET_JOB_STATUS = "set_job_status"
    SUBMIT_PROPOSAL = "submit_proposal"
    WITHDRAW_PROPOSAL = "withdraw_proposal"
    DECIDE_PROPOSAL = "decide_proposal"
    VIEW_JOB_PROPOSALS = "view_job_proposals"
    VIEW_PROPOSAL = "view_proposal"
    VIEW_OWN_JOBS = "view_own_jobs"
    VIEW_OWN_PROPOSALS = "view_own_proposals"


def _owns_job(principal: Principal, job: Optional[Job]) -> bool:
    return (
        job is not None
        and principal.role == UserRole.BUSINESS
        and job.business_id == principal.id
    )


def _owns_proposal(principal: Principal, proposal: Optional[Proposal]) -> bool:
    return (
        proposal is not None
        and principal.role == UserRole.FREELANCER
        and proposal.freelancer_id == principal.id
    )


def is_allowed(
    principal: Principal,
    action: Action,
    job: Optional[Job] = None,
    proposal: Optional[Proposal] = None
) -> bool:
    """Answer whether principal may perform action.

    Args:
        principal: Authenticated actor.
        action: Operation being attempted.
        job: Job the operation targets (the parent job for proposal decisions).
        proposal: Proposal the operation targets.

    Returns:
        True if the rules allow it.
    """
    if action in (Action.CREATE_JOB, Action.VIEW_OWN_JOBS):
        return principal.role == UserRole.BUSINESS

    if action in (Action.EDIT_JOB, Action.DELETE_JOB, Action.SET_JOB_STATUS, Action.DECIDE_PROPOSAL):
        return _owns_job(principal, job)

    if action in (Action.SUBMIT_PROPOSAL, Action.VIEW_OWN_PROPOSALS):
        return principal.role == UserRole.FREELANCER

    if action == Action.WITHDRAW_PROPOSAL:
        return _owns_proposal(principal, proposal)

    if action == Action.VIEW_JOB_PROPOSALS:
        return principal.role == UserRole.ADMIN or _owns_job(principal, job)

    if action == Action.VIEW_PROPOSAL:
        return (
            principal.role == UserRole.ADMIN
            or _owns_proposal(principal, proposal)
            or _owns_job(principal, job)
        )

    return False


def authorize(
    principal: Principal,
    action: Action,
    job: Optional[Job] = None,
    proposal: Optional[Proposal] = None
) -> None:
    """Raise ForbiddenError unless principal may perform action.

    Raises:
        ForbiddenError: If the rules deny the action.
    """
    if not is_allowed(principal, action, job=job, proposal=proposal):
        raise ForbiddenError(f"Not authorized to {action.value.replace('_', ' ')}")
