"""Application-wide constants and configuration values."""

# Table names
JOBS_TABLE = "jobs"
PROPOSALS_TABLE = "proposals"
USERS_TABLE = "users"

# Job lifecycle
JOB_STATUS_TRANSITIONS = {
    "open": {"in-progress", "cancelled"},
    "in-progress": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}

# Statuses a business may set directly; in-progress is only reached by accepting a proposal
MANUAL_JOB_STATUSES = {"completed", "cancelled"}

# Statuses in which a job has a hired freelancer
HIRED_JOB_STATUSES = {"in-progress", "completed"}

# Proposal lifecycle
PROPOSAL_STATUS_TRANSITIONS = {
    "pending": {"accepted", "rejected", "withdrawn"},
    "accepted": set(),
    "rejected": set(),
    "withdrawn": set(),
}

# Fields that can only change through the status transition service
PROTECTED_JOB_FIELDS = [
    "id",
    "business_id",
    "status",
    "hired_freelancer_id",
    "proposal_ids",
    "created_at",
    "updated_at",
]

# Roles allowed to self-register
SELF_SERVICE_ROLES = {"freelancer", "business"}

MIN_PASSWORD_LENGTH = 8

# Sentinel for listing jobs of every status
ALL_STATUSES = "all"

# Conditional read-modify-write attempts before giving up with a conflict
APPEND_PROPOSAL_ATTEMPTS = 5
