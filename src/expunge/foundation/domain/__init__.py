"""Expunge Foundation Domain -- records, jobs, exceptions and port interfaces."""

from expunge.foundation.domain.exceptions import (
    AuthorizationError,
    CascadeAbortedError,
    CredentialRemovalError,
    DomainError,
    InvalidJobError,
    MissingTimestampError,
    RetentionPurgeError,
    StoreError,
    ValidationError,
)
from expunge.foundation.domain.jobs import (
    CertificatePurgeJob,
    Job,
    JobType,
    PurgeKind,
    ResourceDeleteJob,
    TimeThresholdPurgeJob,
    UnknownJob,
    parse_job,
)
from expunge.foundation.domain.records import (
    WILDCARD_ROLE,
    Collection,
    Filter,
    Operator,
    Record,
)

__all__ = [
    "WILDCARD_ROLE",
    "AuthorizationError",
    "CascadeAbortedError",
    "CertificatePurgeJob",
    "Collection",
    "CredentialRemovalError",
    "DomainError",
    "Filter",
    "InvalidJobError",
    "Job",
    "JobType",
    "MissingTimestampError",
    "Operator",
    "PurgeKind",
    "Record",
    "ResourceDeleteJob",
    "RetentionPurgeError",
    "StoreError",
    "TimeThresholdPurgeJob",
    "UnknownJob",
    "ValidationError",
    "parse_job",
]
