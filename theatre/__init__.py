"""
System Operating Theatre - orchestration layer for the system tools ecosystem.

Provides correlation IDs for cross-tool tracing, procedure contexts, and the
policy pack catalogs (validation hooks, required documentation).
"""

from theatre.version import SCHEMA_VERSION, VERSION
from theatre.observability.correlation import (
    CorrelationIdAuthority,
    default_authority,
    generate_correlation_id,
    get_correlation_id,
    init_correlation_id,
    is_valid_correlation_id,
    reset_correlation_id,
)
from theatre.packs import HOOKS, REQUIRED_DOCS, HookName, PackStructureReport, is_valid_hook, validate_pack_structure
from theatre.procedure_context import (
    MissingProcedureIdError,
    ProcedureContext,
    ProcedureContextBuilder,
    ProcedureContextOptions,
    ProcedureSource,
    create_procedure_context,
)

__all__ = [
    "VERSION",
    "SCHEMA_VERSION",
    "HOOKS",
    "REQUIRED_DOCS",
    "HookName",
    "PackStructureReport",
    "is_valid_hook",
    "validate_pack_structure",
    "CorrelationIdAuthority",
    "default_authority",
    "generate_correlation_id",
    "init_correlation_id",
    "get_correlation_id",
    "reset_correlation_id",
    "is_valid_correlation_id",
    "MissingProcedureIdError",
    "ProcedureContext",
    "ProcedureContextBuilder",
    "ProcedureContextOptions",
    "ProcedureSource",
    "create_procedure_context",
]
