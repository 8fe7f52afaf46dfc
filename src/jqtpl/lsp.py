"""jqtpl Language Server — pygls-based LSP for .jqtpl templates.

Provides diagnostics, directive snippet completion, document symbols and
folding ranges via stdio transport. Documents use full text sync and are
re-parsed on every change.
"""

from __future__ import annotations

import logging
from pathlib import Path

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer
from pygls.uris import to_fs_path

from jqtpl import __version__
from jqtpl.checker import Block, directive_body
from jqtpl.config import JqtplConfig, config_for
from jqtpl.errors import Diagnostic, Severity
from jqtpl.snippets import CATALOG, replacement_range
from jqtpl.source import SourceText, Span
from jqtpl.store import Document, DocumentStore
from jqtpl.tokens import SpannedStmt, StmtKind

logger = logging.getLogger(__name__)

SERVER_NAME = "jqtpl-language-server"

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.NOTE: lsp.DiagnosticSeverity.Information,
}

_SYMBOL_KIND_MAP = {
    StmtKind.IF: lsp.SymbolKind.Boolean,
    StmtKind.EACH: lsp.SymbolKind.Array,
    StmtKind.VAR: lsp.SymbolKind.Variable,
    StmtKind.TMPL: lsp.SymbolKind.File,
}

_LEAF_SYMBOLS = frozenset({StmtKind.VAR, StmtKind.TMPL})

_ORIGIN = lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))


def span_to_range(source: SourceText, span: Span) -> lsp.Range:
    """Convert an offset Span to a 0-indexed, UTF-16 LSP Range."""
    sl, sc = source.position(span.start, utf16=True)
    el, ec = source.position(span.end, utf16=True)
    return lsp.Range(
        start=lsp.Position(line=sl, character=sc),
        end=lsp.Position(line=el, character=ec),
    )


def to_lsp_diagnostic(d: Diagnostic, source: SourceText) -> lsp.Diagnostic:
    """Convert a jqtpl Diagnostic to an LSP Diagnostic."""
    span_range = span_to_range(source, d.span) if d.span is not None else _ORIGIN
    message = f"[{d.code}] {d.message}"
    if d.suggestions:
        message += f" ({d.suggestions[0].message})"
    return lsp.Diagnostic(
        range=span_range,
        severity=_SEVERITY_MAP.get(d.severity, lsp.DiagnosticSeverity.Error),
        source="jqtpl",
        code=d.code,
        message=message,
    )


def _internal_error(what: str, exc: Exception) -> lsp.Diagnostic:
    return lsp.Diagnostic(
        range=_ORIGIN,
        severity=lsp.DiagnosticSeverity.Error,
        source="jqtpl",
        message=f"[internal] {what}: {exc}",
    )


def document_diagnostics(doc: Document) -> list[lsp.Diagnostic]:
    source = doc.source
    return [to_lsp_diagnostic(d, source) for d in doc.result.diagnostics]


# ── Completion ────────────────────────────────────────────────────


def completion_items(source: SourceText, position: lsp.Position) -> list[lsp.CompletionItem]:
    """Build the snippet completions for a cursor position.

    Each item's edit range swallows the braces around the cursor so that
    accepting ``{{if ...}}`` after typing ``{{`` does not yield ``{{{{if``.
    """
    line_text = source.line_at(position.line)
    line_start = source.offset(position.line, 0)
    column = source.offset(position.line, position.character, utf16=True) - line_start
    start, end = replacement_range(line_text, column)
    edit_range = lsp.Range(
        start=lsp.Position(*source.position(line_start + start, utf16=True)),
        end=lsp.Position(*source.position(line_start + end, utf16=True)),
    )

    items: list[lsp.CompletionItem] = []
    for i, snippet in enumerate(CATALOG):
        items.append(lsp.CompletionItem(
            label=snippet.label,
            kind=lsp.CompletionItemKind.Snippet,
            detail=snippet.detail,
            documentation=snippet.documentation,
            filter_text="{{" + snippet.label,
            sort_text=f"{i:02d}",
            insert_text_format=lsp.InsertTextFormat.Snippet,
            text_edit=lsp.TextEdit(range=edit_range, new_text=snippet.body),
        ))
    return items


# ── Symbols and folding ──────────────────────────────────────────


def _contains(outer: Span, inner: Span) -> bool:
    return outer.start <= inner.start and inner.end <= outer.end


def _leaf_symbol(st: SpannedStmt, doc: Document, source: SourceText) -> lsp.DocumentSymbol:
    rng = span_to_range(source, st.span)
    return lsp.DocumentSymbol(
        name=directive_body(doc.text, st.span).strip(),
        kind=_SYMBOL_KIND_MAP[st.kind],
        range=rng,
        selection_range=rng,
        detail=st.kind.name.lower(),
    )


def _block_symbol(
    block: Block, leaves: list[SpannedStmt], doc: Document, source: SourceText,
) -> lsp.DocumentSymbol:
    inner = [st for st in leaves if _contains(block.span, st.span)]
    children: list[lsp.DocumentSymbol] = []
    claimed: set[int] = set()
    for child in block.children:
        children.append(_block_symbol(child, inner, doc, source))
        claimed.update(id(st) for st in inner if _contains(child.span, st.span))
    children.extend(_leaf_symbol(st, doc, source) for st in inner if id(st) not in claimed)
    children.sort(key=lambda s: (s.range.start.line, s.range.start.character))
    return lsp.DocumentSymbol(
        name=directive_body(doc.text, block.opener.span).strip(),
        kind=_SYMBOL_KIND_MAP[block.kind],
        range=span_to_range(source, block.span),
        selection_range=span_to_range(source, block.opener.span),
        detail=block.kind.name.lower(),
        children=children if children else None,
    )


def document_symbols(doc: Document) -> list[lsp.DocumentSymbol]:
    """Nest the document's blocks, variables and includes as symbols."""
    source = doc.source
    leaves = [st for st in doc.statements if st.kind in _LEAF_SYMBOLS]
    symbols: list[lsp.DocumentSymbol] = []
    claimed: set[int] = set()
    for block in doc.result.blocks:
        symbols.append(_block_symbol(block, leaves, doc, source))
        claimed.update(id(st) for st in leaves if _contains(block.span, st.span))
    symbols.extend(_leaf_symbol(st, doc, source) for st in leaves if id(st) not in claimed)
    symbols.sort(key=lambda s: (s.range.start.line, s.range.start.character))
    return symbols


def folding_ranges(doc: Document) -> list[lsp.FoldingRange]:
    """One range per closed block spanning more than one line."""
    source = doc.source
    ranges: list[lsp.FoldingRange] = []
    pending = list(doc.result.blocks)
    while pending:
        block = pending.pop()
        pending.extend(block.children)
        if block.closer is None:
            continue
        start_line, _ = source.position(block.opener.span.start)
        end_line, _ = source.position(block.closer.span.start)
        if end_line > start_line:
            ranges.append(lsp.FoldingRange(
                start_line=start_line,
                end_line=end_line,
                kind=lsp.FoldingRangeKind.Region,
            ))
    ranges.sort(key=lambda r: r.start_line)
    return ranges


# ── Server ────────────────────────────────────────────────────────


class JqtplLanguageServer(LanguageServer):
    """LanguageServer that owns the open-document store."""

    def __init__(self) -> None:
        super().__init__(
            SERVER_NAME, __version__,
            text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
        )
        self.documents = DocumentStore()
        self._configs: dict[Path, JqtplConfig] = {}

    def config_for(self, uri: str) -> JqtplConfig:
        """Nearest jqtpl.toml for a document, cached per directory."""
        fs_path = to_fs_path(uri)
        if fs_path is None:
            return JqtplConfig()
        directory = Path(fs_path).parent
        if directory not in self._configs:
            self._configs[directory] = config_for(directory)
        return self._configs[directory]

    def forget_config(self, uri: str) -> None:
        """Drop the cached config for a document's directory."""
        fs_path = to_fs_path(uri)
        if fs_path is not None:
            self._configs.pop(Path(fs_path).parent, None)

    def log_to_client(self, message: str) -> None:
        self.window_log_message(lsp.LogMessageParams(
            type=lsp.MessageType.Info, message=message,
        ))

    def publish(self, uri: str, version: int | None,
                diagnostics: list[lsp.Diagnostic]) -> None:
        self.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
            uri=uri, version=version, diagnostics=diagnostics,
        ))

    def update(self, uri: str, text: str, version: int, *, opened: bool) -> None:
        """Re-analyze a document and publish its diagnostics."""
        try:
            check = self.config_for(uri).check
            if opened:
                doc = self.documents.open(uri, text, version, check)
            else:
                doc = self.documents.change(uri, text, version, check)
        except Exception as e:
            logger.exception("analysis of %s failed", uri)
            self.publish(uri, version, [_internal_error("analysis failed", e)])
            return
        if doc is None:
            logger.debug("dropping stale version %s of %s", version, uri)
            return
        self.publish(uri, doc.version, document_diagnostics(doc))


def create_server() -> JqtplLanguageServer:
    server = JqtplLanguageServer()

    @server.feature(lsp.INITIALIZED)
    def initialized(params: lsp.InitializedParams) -> None:
        server.log_to_client(f"{SERVER_NAME} reports for duty!")

    @server.feature(lsp.SHUTDOWN)
    def shutdown(params: None) -> None:
        server.log_to_client(f"{SERVER_NAME} says bye, bye!")

    @server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
    def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
        item = params.text_document
        logger.info("did open %s", item.uri)
        # jqtpl.toml may have changed since the directory was last seen
        server.forget_config(item.uri)
        server.update(item.uri, item.text, item.version, opened=True)

    @server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
    def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
        uri = params.text_document.uri
        logger.info("did change %s", uri)
        # Full sync — take last content change
        text = params.content_changes[-1].text if params.content_changes else ""
        server.update(uri, text, params.text_document.version, opened=False)

    @server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
    def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
        uri = params.text_document.uri
        logger.info("did close %s", uri)
        server.documents.close(uri)
        server.publish(uri, None, [])

    @server.feature(
        lsp.TEXT_DOCUMENT_COMPLETION,
        lsp.CompletionOptions(trigger_characters=["{"], resolve_provider=False),
    )
    def completion(params: lsp.CompletionParams) -> lsp.CompletionList:
        doc = server.documents.get(params.text_document.uri)
        source = doc.source if doc is not None else SourceText("")
        return lsp.CompletionList(
            is_incomplete=False,
            items=completion_items(source, params.position),
        )

    @server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
    def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
        doc = server.documents.get(params.text_document.uri)
        return document_symbols(doc) if doc is not None else []

    @server.feature(lsp.TEXT_DOCUMENT_FOLDING_RANGE)
    def folding_range(params: lsp.FoldingRangeParams) -> list[lsp.FoldingRange]:
        doc = server.documents.get(params.text_document.uri)
        return folding_ranges(doc) if doc is not None else []

    return server


# ── Entry point ──────────────────────────────────────────────────


def main() -> None:
    """Start the jqtpl language server on stdio."""
    server = create_server()
    logger.info("starting %s %s", SERVER_NAME, __version__)
    server.start_io()
