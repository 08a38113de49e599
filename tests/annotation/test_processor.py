"""Tests for the whole-project annotation pipeline."""

import os

import pytest

from existential_annotator.annotation import Processor, RunPhase
from existential_annotator.annotation import processor as processor_module
from existential_annotator.config import AnnotatorConfig
from existential_annotator.exceptions import (
    FileAccessError,
    InvalidPathError,
    ParsingError,
    ProcessingError,
    WriteError,
)

pytestmark = pytest.mark.swift


@pytest.fixture
def make_processor(parser):
    def _make(**config):
        return Processor(AnnotatorConfig(**config), parser=parser)

    return _make


@pytest.fixture
def record_writes(monkeypatch):
    """Capture write-backs instead of touching disk."""
    written = []
    real_write = processor_module.atomic_write_bytes

    def _write(path, content):
        written.append(path)
        real_write(path, content)

    monkeypatch.setattr(processor_module, "atomic_write_bytes", _write)
    return written


class TestCrossFileDiscovery:
    """Names declared anywhere apply everywhere."""

    def test_reference_before_declaration(self, swift_project, make_processor):
        root = swift_project(
            {
                "A/Consumer.swift": """
                    final class Consumer {
                        private let provider: ZProvider

                        init(provider: ZProvider) {
                            self.provider = provider
                        }
                    }
                    """,
                "Z/ZProvider.swift": """
                    protocol ZProvider {
                        func value() -> Int
                    }
                    """,
            }
        )

        summary = make_processor().process_directory(root)

        consumer = (root / "A/Consumer.swift").read_text()
        assert "private let provider: any ZProvider" in consumer
        assert "init(provider: any ZProvider)" in consumer
        assert summary.protocols_found == 1
        assert summary.files_scanned == 2

    def test_allow_list_argument_overrides_config(self, swift_project, make_processor):
        root = swift_project({"Model.swift": "var tracker: AnalyticsTracking\n"})
        make_processor().process_directory(root, allow_list={"AnalyticsTracking"})
        assert (root / "Model.swift").read_text() == "var tracker: any AnalyticsTracking\n"

    def test_configured_external_protocols(self, swift_project, make_processor):
        root = swift_project({"Failure.swift": "var lastError: Error?\n"})
        make_processor().process_directory(root)
        assert (root / "Failure.swift").read_text() == "var lastError: (any Error)?\n"


class TestWriteBack:
    """Only changed files are written."""

    def test_unchanged_files_not_written(self, swift_project, make_processor, record_writes):
        root = swift_project(
            {
                "Declares.swift": "protocol Store {}\n",
                "Uses.swift": "var store: Store\n",
                "Plain.swift": "struct Value {}\n",
            }
        )

        summary = make_processor().process_directory(root)

        assert record_writes == [root / "Uses.swift"]
        assert summary.files_changed == 1
        assert summary.changed_paths == [root / "Uses.swift"]

    def test_dry_run_writes_nothing(self, swift_project, make_processor, record_writes):
        root = swift_project({"Declares.swift": "protocol Store {}\nvar store: Store\n"})

        summary = make_processor(dry_run=True).process_directory(root)

        assert record_writes == []
        assert summary.dry_run is True
        assert summary.files_changed == 1
        assert (root / "Declares.swift").read_text() == "protocol Store {}\nvar store: Store\n"

    def test_second_run_is_noop(self, swift_project, make_processor, record_writes):
        root = swift_project(
            {"Store.swift": "protocol Store {}\nfunc make() -> Store? {\n    nil\n}\n"}
        )

        make_processor().process_directory(root)
        first = (root / "Store.swift").read_text()
        summary = make_processor().process_directory(root)

        assert first == "protocol Store {}\nfunc make() -> (any Store)? {\n    nil\n}\n"
        assert summary.files_changed == 0
        assert len(record_writes) == 1

    def test_write_failure_propagates(self, swift_project, make_processor, monkeypatch):
        root = swift_project({"Store.swift": "protocol Store {}\nvar store: Store\n"})

        def _fail(path, content):
            raise WriteError(path, "disk full")

        monkeypatch.setattr(processor_module, "atomic_write_bytes", _fail)

        with pytest.raises(WriteError):
            make_processor().process_directory(root)

    def test_write_failure_keeps_earlier_writes(self, swift_project, make_processor, monkeypatch):
        """A failed write stops the remaining writes; earlier files stay written."""
        root = swift_project(
            {
                "A.swift": "var a: Store\n",
                "B.swift": "var b: Store\n",
                "C.swift": "var c: Store\n",
            }
        )
        attempted = []
        real_write = processor_module.atomic_write_bytes

        def _fail_second(path, content):
            attempted.append(path.name)
            if path.name == "B.swift":
                raise WriteError(path, "disk full")
            real_write(path, content)

        monkeypatch.setattr(processor_module, "atomic_write_bytes", _fail_second)

        with pytest.raises(WriteError) as exc_info:
            make_processor().process_directory(root, allow_list={"Store"})

        assert exc_info.value.filepath == root / "B.swift"
        assert attempted == ["A.swift", "B.swift"]
        assert (root / "A.swift").read_text() == "var a: any Store\n"
        assert (root / "B.swift").read_text() == "var b: Store\n"
        assert (root / "C.swift").read_text() == "var c: Store\n"

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinked_file_updates_target(self, tmp_path, make_processor):
        shared = tmp_path / "shared"
        project = tmp_path / "project"
        shared.mkdir()
        project.mkdir()
        target = shared / "Real.swift"
        target.write_text("protocol P {}\nvar p: P\n")
        (project / "Link.swift").symlink_to(target)

        summary = make_processor(follow_symlinks=True).process_directory(project)

        assert summary.files_changed == 1
        assert (project / "Link.swift").is_symlink()
        assert target.read_text() == "protocol P {}\nvar p: any P\n"


class TestFailures:
    """Read, parse and size failures abort the run before anything is written."""

    def test_parse_failure_writes_nothing(self, swift_project, make_processor, record_writes):
        root = swift_project(
            {
                "Good.swift": "protocol Store {}\nvar store: Store\n",
                "Broken.swift": "final class {{{ \n",
            }
        )

        with pytest.raises(ParsingError) as exc_info:
            make_processor().process_directory(root)

        assert exc_info.value.filepath == root / "Broken.swift"
        assert record_writes == []
        assert (root / "Good.swift").read_text() == "protocol Store {}\nvar store: Store\n"

    def test_missing_root(self, tmp_path, make_processor):
        with pytest.raises(InvalidPathError):
            make_processor().process_directory(tmp_path / "missing")

    def test_oversize_declaring_file_aborts(self, swift_project, make_processor, record_writes):
        """A file too large to scan stops the run instead of hiding its protocols."""
        root = swift_project(
            {
                "A.swift": "var p: BigProto\n",
                "Big.swift": "protocol BigProto {}\n// " + "x" * 2048 + "\n",
            }
        )

        with pytest.raises(FileAccessError) as exc_info:
            make_processor(max_file_size_mb=1 / 1024).process_directory(root)

        assert exc_info.value.filepath == root / "Big.swift"
        assert record_writes == []
        assert (root / "A.swift").read_text() == "var p: BigProto\n"

    def test_unparsable_output_writes_nothing(
        self, swift_project, make_processor, record_writes, monkeypatch
    ):
        """Annotated output that no longer parses is never written."""
        root = swift_project(
            {
                "A.swift": "var a: Store\n",
                "B.swift": "var b: Store\n",
            }
        )

        class _BreakingRewriter:
            def __init__(self, names, parser):
                self._parser = parser

            def rewrite(self, tree):
                return self._parser.parse(tree.source + b"struct {{{\n", tree.path, strict=False)

        monkeypatch.setattr(processor_module, "Rewriter", _BreakingRewriter)

        with pytest.raises(ParsingError) as exc_info:
            make_processor().process_directory(root, allow_list={"Store"})

        assert "annotated output" in exc_info.value.reason
        assert record_writes == []
        assert (root / "A.swift").read_text() == "var a: Store\n"

    def test_rewrite_requires_completed_discovery(self, make_processor):
        processor = make_processor()
        assert processor.phase is RunPhase.DISCOVERY
        with pytest.raises(ProcessingError):
            processor._rewrite_all([], frozenset({"Store"}))


class TestParallelism:
    """Thread-pool fan-out gives the same result as the sequential path."""

    def test_many_files(self, swift_project, make_processor):
        files = {f"Feature{i:02d}.swift": f"var handler{i}: Handler\n" for i in range(15)}
        files["Handler.swift"] = "protocol Handler {}\n"
        root = swift_project(files)

        processor = make_processor(workers=4)
        summary = processor.process_directory(root)

        assert summary.files_scanned == 16
        assert summary.files_changed == 15
        assert summary.changed_paths == sorted(summary.changed_paths)
        assert (root / "Feature07.swift").read_text() == "var handler7: any Handler\n"
        assert processor.phase is RunPhase.REWRITE

    def test_process_files_sorts_input(self, swift_project, make_processor):
        root = swift_project({"b.swift": "var x: P\n", "a.swift": "var y: P\n"})
        summary = make_processor().process_files(
            [root / "b.swift", root / "a.swift"], allow_list={"P"}
        )
        assert summary.changed_paths == [root / "a.swift", root / "b.swift"]
