"""Shared pytest fixtures for the jqtpl test suite."""

from __future__ import annotations

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tmp_project(tmp_path):
    """Create a small template project in a temp dir."""
    (tmp_path / "jqtpl.toml").write_text(
        "[check]\nstructure = true\nunknown = \"error\"\n"
        "[files]\npatterns = [\"*.jqtpl\"]\n"
    )
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "list.jqtpl").write_text(
        "<ul>\n"
        "{{each items}}\n"
        "  <li>{{= $value.name}}</li>\n"
        "{{/each}}\n"
        "</ul>\n"
    )
    return tmp_path
