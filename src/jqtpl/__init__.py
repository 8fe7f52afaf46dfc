"""Parser and editor tooling for jQuery template (jqtpl) files."""

from jqtpl.parser import parse, recognize
from jqtpl.source import Span
from jqtpl.tokens import SpannedStmt, Stmt, StmtKind

__version__ = "0.1.0"

__all__ = ["Span", "SpannedStmt", "Stmt", "StmtKind", "parse", "recognize"]
