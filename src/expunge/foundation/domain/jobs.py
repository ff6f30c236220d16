"""Delete job models.

A job is a mapping with a ``type`` tag and a type-specific payload, delivered
once by the queue. Known tags are validated with pydantic; an unknown tag is
not an error and parses to :class:`UnknownJob`, so workers keep accepting
jobs introduced by newer producers.

Example:
    >>> job = parse_job({"type": "audit", "timestamp": 1700000000})
    >>> job.kind
    <PurgeKind.AUDIT: 'audit'>
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from expunge.foundation.domain.exceptions import InvalidJobError
from expunge.foundation.domain.records import ID_FIELD, Record


class JobType(StrEnum):
    """Wire tags of the delete jobs this worker understands."""

    DOCUMENT = "document"
    EXECUTIONS = "executions"
    AUDIT = "audit"
    ABUSE = "abuse"
    REALTIME = "realtime"
    CERTIFICATES = "certificates"


class PurgeKind(StrEnum):
    """Retention purge kinds (a subset of :class:`JobType`)."""

    EXECUTIONS = "executions"
    AUDIT = "audit"
    ABUSE = "abuse"
    REALTIME = "realtime"


class _Job(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class ResourceDeleteJob(_Job):
    """A resource was removed; delete what depends on it.

    Attributes:
        document: Wire-form snapshot of the removed resource.
        project_id: Tenant the resource belonged to (absent for projects).
    """

    type: Literal["document"] = "document"
    document: dict[str, Any]
    project_id: str | None = Field(default=None, alias="projectId")

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @field_validator("document")
    @classmethod
    def _require_id(cls, v: dict[str, Any]) -> dict[str, Any]:
        if not v.get(ID_FIELD):
            msg = f"document snapshot must carry a non-empty {ID_FIELD}"
            raise ValueError(msg)
        return v

    @property
    def resource(self) -> Record:
        return Record.from_document(self.document)


class TimeThresholdPurgeJob(_Job):
    """Delete aged records older than ``timestamp`` (unix seconds).

    The timestamp defaults to 0 so that a missing threshold reaches the
    purger, which decides whether zero is acceptable for its kind.
    """

    type: Literal["executions", "audit", "abuse", "realtime"]
    timestamp: int = 0

    @property
    def kind(self) -> PurgeKind:
        return PurgeKind(self.type)


class CertificatePurgeJob(_Job):
    """Remove the stored certificate files of a domain."""

    type: Literal["certificates"] = "certificates"
    document: dict[str, Any] = Field(default_factory=dict)

    @property
    def domain(self) -> str:
        return str(self.document.get("domain") or "")


class UnknownJob(_Job):
    """A job whose type this worker does not handle."""

    type: str


KnownJob = Annotated[
    ResourceDeleteJob | TimeThresholdPurgeJob | CertificatePurgeJob,
    Field(discriminator="type"),
]
Job = ResourceDeleteJob | TimeThresholdPurgeJob | CertificatePurgeJob | UnknownJob

_known_job_adapter: TypeAdapter[Any] = TypeAdapter(KnownJob)


def parse_job(payload: dict[str, Any]) -> Job:
    """Validate a raw queue payload into a job.

    Args:
        payload: Mapping delivered by the queue.

    Returns:
        The typed job; :class:`UnknownJob` for unrecognized type tags.

    Raises:
        InvalidJobError: If a recognized job type carries a malformed payload.
    """
    job_type = str(payload.get("type", ""))
    if job_type not in set(JobType):
        return UnknownJob(type=job_type)
    try:
        job: Job = _known_job_adapter.validate_python(payload)
    except PydanticValidationError as exc:
        raise InvalidJobError(
            "payload",
            exc.errors(include_url=False)[0]["msg"],
            job_type=job_type,
        ) from exc
    return job
