"""Shared test fixtures for Existential Annotator tests."""

import textwrap

import pytest

from existential_annotator.scanning.treesitter_parser import (
    TreeSitterParser,
    get_supported_languages,
)


def pytest_configure(config):
    """Register the swift marker."""
    config.addinivalue_line("markers", "swift: test needs the tree-sitter Swift grammar")


def pytest_collection_modifyitems(config, items):
    """Skip grammar-dependent tests when tree-sitter-swift is missing."""
    if "swift" in get_supported_languages():
        return
    skip_swift = pytest.mark.skip(reason="tree-sitter-swift not installed")
    for item in items:
        if "swift" in item.keywords:
            item.add_marker(skip_swift)


@pytest.fixture(scope="session")
def parser():
    """Swift parser shared across the session."""
    if "swift" not in get_supported_languages():
        pytest.skip("tree-sitter-swift not installed")
    return TreeSitterParser()


@pytest.fixture
def parse(parser):
    """Parse an inline (dedented) Swift snippet into a SyntaxTree."""

    def _parse(code: str, strict: bool = True):
        source = textwrap.dedent(code).lstrip("\n")
        return parser.parse(source.encode("utf-8"), strict=strict)

    return _parse


@pytest.fixture
def swift_project(tmp_path):
    """Write a mapping of relative path -> Swift snippet under tmp_path."""

    def _write(files: dict):
        for relative, code in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(code).lstrip("\n"), encoding="utf-8")
        return tmp_path

    return _write
