"""Reusable request builders — update command buffer and query term helper.

Both are created lazily by ``ConnectionManager`` and owned by a single
connector instance.
"""

from __future__ import annotations

import json
import re
from datetime import UTC, date, datetime
from typing import Any

_SPECIAL_TERM_CHARS = re.compile(r'(\+|-|&&|\|\||!|\(|\)|\{|\}|\[|\]|\^|"|~|\*|\?|:|/|\\)')
_SPECIAL_PHRASE_CHARS = re.compile(r'("|\\)')


class UpdateQuery:
    """Buffer of Solr JSON update commands.

    Commands are serialized in insertion order by ``to_json()``. Solr accepts
    repeated keys in a JSON update body, so the body is built by hand rather
    than through a single ``dict``.
    """

    def __init__(self) -> None:
        self._commands: list[tuple[str, Any]] = []

    def __len__(self) -> int:
        return len(self._commands)

    def add_document(self, document: dict[str, Any], overwrite: bool = True) -> UpdateQuery:
        self._commands.append(("add", {"doc": document, "overwrite": overwrite}))
        return self

    def add_documents(self, documents: list[dict[str, Any]], overwrite: bool = True) -> UpdateQuery:
        for document in documents:
            self.add_document(document, overwrite=overwrite)
        return self

    def delete_by_id(self, *ids: str) -> UpdateQuery:
        if ids:
            self._commands.append(("delete", list(ids)))
        return self

    def delete_by_query(self, query: str) -> UpdateQuery:
        self._commands.append(("delete", {"query": query}))
        return self

    def commit(self, soft_commit: bool = False, wait_searcher: bool = True) -> UpdateQuery:
        self._commands.append(("commit", {"softCommit": soft_commit, "waitSearcher": wait_searcher}))
        return self

    def optimize(self, max_segments: int | None = None, wait_searcher: bool = True) -> UpdateQuery:
        options: dict[str, Any] = {"waitSearcher": wait_searcher}
        if max_segments is not None:
            options["maxSegments"] = max_segments
        self._commands.append(("optimize", options))
        return self

    def reset(self) -> None:
        """Drop every buffered command."""
        self._commands = []

    def to_json(self) -> str:
        """Serialize the buffered commands as a Solr JSON update body."""
        parts = [f"{json.dumps(name)}:{json.dumps(value, default=str)}" for name, value in self._commands]
        return "{" + ",".join(parts) + "}"


class QueryHelper:
    """Escaping and formatting helpers for Solr query strings."""

    @staticmethod
    def escape_term(term: str) -> str:
        """Escape Lucene special characters in a single term."""
        return _SPECIAL_TERM_CHARS.sub(r"\\\1", term)

    @staticmethod
    def escape_phrase(phrase: str) -> str:
        """Quote a phrase, escaping embedded quotes and backslashes."""
        return '"' + _SPECIAL_PHRASE_CHARS.sub(r"\\\1", phrase) + '"'

    @staticmethod
    def format_date(value: datetime | date | int | float) -> str:
        """Render a date in the ISO-8601 UTC form Solr expects (``2024-01-31T12:00:00Z``).

        Naive datetimes are treated as UTC; numbers are Unix timestamps.
        """
        if isinstance(value, (int, float)):
            value = datetime.fromtimestamp(value, tz=UTC)
        elif not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day, tzinfo=UTC)
        elif value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")

    @staticmethod
    def range_query(field: str, start: Any = None, end: Any = None, inclusive: bool = True) -> str:
        """Build ``field:[start TO end]``; ``None`` bounds become ``*``."""
        low = "*" if start is None else str(start)
        high = "*" if end is None else str(end)
        if inclusive:
            return f"{field}:[{low} TO {high}]"
        return f"{field}:{{{low} TO {high}}}"
