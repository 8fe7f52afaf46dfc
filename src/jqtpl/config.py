"""TOML config loading for jqtpl.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from jqtpl.errors import ConfigError, Severity

CONFIG_NAME = "jqtpl.toml"


@dataclass
class CheckConfig:
    structure: bool = True
    unknown: Severity = Severity.ERROR


@dataclass
class FilesConfig:
    patterns: list[str] = field(default_factory=lambda: ["*.jqtpl", "*.tmpl"])


@dataclass
class JqtplConfig:
    check: CheckConfig = field(default_factory=CheckConfig)
    files: FilesConfig = field(default_factory=FilesConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find jqtpl.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> JqtplConfig:
    """Parse a jqtpl.toml file into a JqtplConfig."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(path, str(e)) from e

    config = JqtplConfig()

    if "check" in data:
        chk = data["check"]
        unknown = chk.get("unknown", "error")
        try:
            severity = Severity(unknown)
        except ValueError:
            choices = ", ".join(s.value for s in Severity)
            raise ConfigError(
                path, f"check.unknown must be one of {choices}, got {unknown!r}",
            ) from None
        structure = chk.get("structure", True)
        if not isinstance(structure, bool):
            raise ConfigError(
                path, f"check.structure must be true or false, got {structure!r}",
            )
        config.check = CheckConfig(structure=structure, unknown=severity)

    if "files" in data:
        fls = data["files"]
        patterns = fls.get("patterns", ["*.jqtpl", "*.tmpl"])
        if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
            raise ConfigError(
                path, f"files.patterns must be a list of strings, got {patterns!r}",
            )
        config.files = FilesConfig(patterns=patterns)

    return config


def config_for(path: Path | None) -> JqtplConfig:
    """Load the nearest jqtpl.toml above ``path``, or the defaults if none exists."""
    try:
        return load_config(find_config(path))
    except FileNotFoundError:
        return JqtplConfig()
