from __future__ import annotations

VERSION: str = "1.1.0"
SCHEMA_VERSION: str = "1.0"
