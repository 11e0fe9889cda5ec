"""Solr version string helpers."""

from __future__ import annotations

UNKNOWN_VERSION = "0.0.0"


def normalize_version(version: str) -> str:
    """Expand a version to three components: ``"6"`` → ``"6.0.0"``, ``"6.2"`` → ``"6.2.0"``.

    Components beyond the third are kept as given.
    """
    parts = version.split(".")
    parts += ["0"] * (3 - len(parts))
    return ".".join(parts)


def major_version(version: str) -> str:
    return version.split(".")[0]


def branch(version: str) -> str:
    return f"{major_version(version)}.x"


def lucene_match_version(version: str) -> str:
    """``"7.3.1"`` → ``"7.3"``."""
    parts = normalize_version(version).split(".")
    return f"{parts[0]}.{parts[1]}"


def schema_version(schema: str) -> str:
    """Version part of a schema name: everything after the first ``-``.

    Raises:
        ValueError: If the schema name carries no version part.
    """
    _, sep, version = schema.partition("-")
    if not sep:
        raise ValueError(f"Schema name '{schema}' has no version suffix")
    return version
