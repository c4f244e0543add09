from __future__ import annotations

import dataclasses
import re
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from theatre.observability.correlation import (
    CorrelationIdAuthority,
    default_authority,
    get_correlation_id,
    init_correlation_id,
)
from theatre.procedure_context import (
    MissingProcedureIdError,
    ProcedureContextBuilder,
    ProcedureContextOptions,
    ProcedureSource,
    create_procedure_context,
)

_FORMAT = re.compile(r"^corr-[a-f0-9]{16}$")


def test_create_context_with_required_fields():
    ctx = create_procedure_context({"procedureId": "proc-001"})
    assert ctx.procedure_id == "proc-001"
    assert _FORMAT.match(ctx.correlation_id)
    assert ctx.source is ProcedureSource.MANUAL
    assert ctx.source == "manual"
    assert ctx.dry_run is False
    assert ctx.started_at.tzinfo is not None


def test_create_context_initializes_process_correlation_id():
    ctx = create_procedure_context(procedure_id="proc-001")
    assert get_correlation_id() == ctx.correlation_id
    again = create_procedure_context(procedure_id="proc-001b")
    assert again.correlation_id == ctx.correlation_id


def test_create_context_reuses_existing_process_id():
    init_correlation_id("corr-0000111122223333")
    ctx = create_procedure_context(procedure_id="proc-001")
    assert ctx.correlation_id == "corr-0000111122223333"


def test_create_context_uses_provided_correlation_id():
    ctx = create_procedure_context(
        {"procedureId": "proc-002", "correlationId": "corr-abcdef1234567890"},
    )
    assert ctx.correlation_id == "corr-abcdef1234567890"
    # Explicit id does not initialize the process-wide id.
    assert get_correlation_id() is None


def test_create_context_supports_emergency_room_source():
    ctx = create_procedure_context(
        procedure_id="proc-003",
        source="emergency-room",
        correlation_id="corr-emergency123456",
    )
    assert ctx.source is ProcedureSource.EMERGENCY_ROOM


def test_create_context_supports_dry_run():
    ctx = create_procedure_context({"procedureId": "proc-004", "dryRun": True})
    assert ctx.dry_run is True


def test_create_context_keeps_provided_started_at():
    ts = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    ctx = create_procedure_context(procedure_id="proc-005", started_at=ts, source=ProcedureSource.SCHEDULED)
    assert ctx.started_at == ts
    assert ctx.source is ProcedureSource.SCHEDULED


def test_started_at_defaults_to_now():
    before = datetime.now(timezone.utc)
    ctx = create_procedure_context(procedure_id="proc-006")
    after = datetime.now(timezone.utc)
    assert before <= ctx.started_at <= after


def test_missing_procedure_id_fails_fast():
    with pytest.raises(MissingProcedureIdError):
        create_procedure_context()
    with pytest.raises(MissingProcedureIdError):
        create_procedure_context({"dryRun": True})
    with pytest.raises(MissingProcedureIdError):
        create_procedure_context(procedure_id=None)
    # Nothing was initialized on the failing path.
    assert get_correlation_id() is None


def test_empty_procedure_id_is_still_an_identifier():
    ctx = create_procedure_context(procedure_id="")
    assert ctx.procedure_id == ""


def test_unknown_source_is_rejected():
    with pytest.raises(ValidationError):
        create_procedure_context(procedure_id="proc-007", source="cron")


def test_none_optional_fields_fall_back_to_defaults():
    ctx = create_procedure_context(procedure_id="proc-008", source=None, dry_run=None, started_at=None)
    assert ctx.source is ProcedureSource.MANUAL
    assert ctx.dry_run is False


def test_context_is_immutable():
    ctx = create_procedure_context(procedure_id="proc-009")
    with pytest.raises(dataclasses.FrozenInstanceError):
        ctx.dry_run = True  # type: ignore[misc]


def test_options_model_and_overrides_merge():
    opts = ProcedureContextOptions(procedureId="proc-010", source="psa")
    ctx = create_procedure_context(opts, dryRun=True)
    assert ctx.procedure_id == "proc-010"
    assert ctx.source is ProcedureSource.PSA
    assert ctx.dry_run is True


def test_none_override_keeps_options_correlation_id():
    opts = ProcedureContextOptions(procedureId="proc-010b", correlationId="corr-abcdef1234567890")
    ctx = create_procedure_context(opts, correlation_id=None, dryRun=None)
    assert ctx.correlation_id == "corr-abcdef1234567890"
    assert ctx.dry_run is False
    assert get_correlation_id() is None


def test_conflicting_key_spellings_are_rejected():
    with pytest.raises(ValueError, match="procedure_id"):
        create_procedure_context({"procedureId": "a", "procedure_id": "b"})
    with pytest.raises(ValueError, match="dry_run"):
        create_procedure_context(procedure_id="proc-010c", dryRun=True, dry_run=False)
    # Same value under both spellings is not a conflict.
    ctx = create_procedure_context({"procedureId": "a", "procedure_id": "a"})
    assert ctx.procedure_id == "a"


def test_builder_uses_its_own_authority():
    authority = CorrelationIdAuthority()
    builder = ProcedureContextBuilder(authority)
    assert builder.authority is authority
    ctx = builder.create(procedure_id="proc-011")
    assert authority.current() == ctx.correlation_id
    assert get_correlation_id() is None


def test_builder_defaults_to_process_authority():
    builder = ProcedureContextBuilder()
    assert builder.authority is default_authority()
    ctx = builder.create(procedure_id="proc-011b")
    assert get_correlation_id() == ctx.correlation_id


def test_to_audit_dict_is_json_safe():
    ts = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    ctx = create_procedure_context(
        procedure_id="proc-012",
        correlation_id="corr-abcdef1234567890",
        started_at=ts,
        source="psa",
    )
    assert ctx.to_audit_dict() == {
        "correlation_id": "corr-abcdef1234567890",
        "procedure_id": "proc-012",
        "started_at": "2026-01-02T03:04:05+00:00",
        "source": "psa",
        "dry_run": False,
    }
