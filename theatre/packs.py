"""
Policy pack catalogs: validation hook names and required pack documentation.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field


HookName = Literal[
    "validate-codeql.sh",
    "validate-permissions.sh",
    "validate-sha-pins.sh",
    "validate-spdx.sh",
]

HOOKS: tuple[str, ...] = get_args(HookName)

REQUIRED_DOCS: tuple[str, ...] = (
    "ANTI-FEARWARE.adoc",
    "CLAIMS_POLICY.adoc",
)


class PackStructureReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    # Ordered as in REQUIRED_DOCS.
    missing: List[str] = Field(default_factory=list)


def is_valid_hook(name: Any) -> bool:
    return isinstance(name, str) and name in HOOKS


def validate_pack_structure(files: Iterable[str]) -> PackStructureReport:
    if isinstance(files, (str, bytes)):
        raise TypeError("validate_pack_structure expects a sequence of filenames, not a single string")
    present = set(files)
    missing = [doc for doc in REQUIRED_DOCS if doc not in present]
    return PackStructureReport(valid=not missing, missing=missing)
