"""
Procedure context for theatre operations.

A `ProcedureContext` describes one unit of orchestrated work: which procedure,
when it started, what triggered it, and whether it is a dry run. It is an
immutable value; consumers pass it along the call chain and discard it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from theatre.observability.correlation import CorrelationIdAuthority, default_authority


class ProcedureSource(str, Enum):
    EMERGENCY_ROOM = "emergency-room"
    PSA = "psa"
    MANUAL = "manual"
    SCHEDULED = "scheduled"


class MissingProcedureIdError(ValueError):
    """
    Raised when a procedure context is requested without a procedure id.

    This is a caller bug; it is never retried or recovered.
    """

    def __init__(self) -> None:
        super().__init__("procedure_id is required to create a procedure context")


@dataclass(frozen=True)
class ProcedureContext:
    correlation_id: str
    procedure_id: str
    started_at: datetime
    source: ProcedureSource
    dry_run: bool

    def to_audit_dict(self) -> dict[str, Any]:
        return {
            "correlation_id": self.correlation_id,
            "procedure_id": self.procedure_id,
            "started_at": self.started_at.isoformat(),
            "source": self.source.value,
            "dry_run": self.dry_run,
        }


class ProcedureContextOptions(BaseModel):
    """
    Options bag for `ProcedureContextBuilder.create`.

    Accepts snake_case names or the camelCase names the sibling tools use on
    the wire (`procedureId`, `correlationId`, `startedAt`, `dryRun`).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    procedure_id: str = Field(alias="procedureId")
    correlation_id: Optional[str] = Field(default=None, alias="correlationId")
    started_at: Optional[datetime] = Field(default=None, alias="startedAt")
    source: ProcedureSource = ProcedureSource.MANUAL
    dry_run: bool = Field(default=False, alias="dryRun")


_WIRE_NAMES = {
    "procedureId": "procedure_id",
    "correlationId": "correlation_id",
    "startedAt": "started_at",
    "dryRun": "dry_run",
}

OptionsLike = Union[ProcedureContextOptions, Mapping[str, Any]]


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in data.items():
        name = _WIRE_NAMES.get(k, k)
        if name in out and out[name] != v:
            raise ValueError(f"Conflicting values for {name!r} (both snake_case and camelCase given)")
        out[name] = v
    return out


def _coerce_options(options: Optional[OptionsLike], overrides: Mapping[str, Any]) -> ProcedureContextOptions:
    if isinstance(options, ProcedureContextOptions):
        if not overrides:
            return options
        data: dict[str, Any] = options.model_dump(exclude_unset=True)
    else:
        data = _normalize_keys(options or {})
    # An explicit None means "not supplied"; it never clears a base value.
    data.update({k: v for k, v in _normalize_keys(overrides).items() if v is not None})

    # Fail fast with a dedicated error instead of a generic validation error.
    if data.get("procedure_id") is None:
        raise MissingProcedureIdError()
    data = {k: v for k, v in data.items() if v is not None}
    return ProcedureContextOptions.model_validate(data)


class ProcedureContextBuilder:
    """
    Stateless factory for `ProcedureContext` values.

    When no correlation id is supplied, the builder asks its authority to
    initialize one (reusing the process-wide id if already set).
    """

    def __init__(self, authority: Optional[CorrelationIdAuthority] = None) -> None:
        self._authority = authority or default_authority()

    @property
    def authority(self) -> CorrelationIdAuthority:
        return self._authority

    def create(self, options: Optional[OptionsLike] = None, **overrides: Any) -> ProcedureContext:
        opts = _coerce_options(options, overrides)
        correlation_id = opts.correlation_id
        if correlation_id is None:
            correlation_id = self._authority.initialize()
        started_at = opts.started_at if opts.started_at is not None else datetime.now(timezone.utc)
        return ProcedureContext(
            correlation_id=correlation_id,
            procedure_id=opts.procedure_id,
            started_at=started_at,
            source=opts.source,
            dry_run=opts.dry_run,
        )


def create_procedure_context(options: Optional[OptionsLike] = None, **overrides: Any) -> ProcedureContext:
    """Create a procedure context backed by the process-wide correlation id."""
    return ProcedureContextBuilder(default_authority()).create(options, **overrides)
