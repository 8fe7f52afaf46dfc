"""Per-document state for the language server."""

from __future__ import annotations

from dataclasses import dataclass, field

from jqtpl.checker import CheckResult, Checker
from jqtpl.config import CheckConfig
from jqtpl.parser import parse
from jqtpl.source import SourceText
from jqtpl.tokens import SpannedStmt


@dataclass
class Document:
    """Latest text of an open document and its analysis."""

    uri: str
    text: str
    version: int
    statements: list[SpannedStmt] = field(default_factory=list)
    result: CheckResult = field(default_factory=CheckResult)

    @property
    def source(self) -> SourceText:
        return SourceText(self.text, self.uri)


class DocumentStore:
    """Maps document URIs to their latest text, version and analysis.

    Every accepted update re-parses the whole text. Updates carrying a
    version that is not newer than the stored one are dropped.
    """

    def __init__(self, config: CheckConfig | None = None) -> None:
        self.config = config or CheckConfig()
        self._docs: dict[str, Document] = {}

    def __contains__(self, uri: object) -> bool:
        return uri in self._docs

    def __len__(self) -> int:
        return len(self._docs)

    def get(self, uri: str) -> Document | None:
        return self._docs.get(uri)

    def open(self, uri: str, text: str, version: int,
             config: CheckConfig | None = None) -> Document:
        doc = self._analyze(uri, text, version, config)
        self._docs[uri] = doc
        return doc

    def change(self, uri: str, text: str, version: int,
               config: CheckConfig | None = None) -> Document | None:
        """Replace the document text. Returns None for a stale version."""
        current = self._docs.get(uri)
        if current is not None and version <= current.version:
            return None
        return self.open(uri, text, version, config)

    def close(self, uri: str) -> Document | None:
        return self._docs.pop(uri, None)

    def _analyze(self, uri: str, text: str, version: int,
                 config: CheckConfig | None) -> Document:
        statements = parse(text)
        result = Checker(config or self.config).check(statements, text)
        return Document(uri, text, version, statements, result)
