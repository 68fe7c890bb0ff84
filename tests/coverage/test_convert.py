"""Tests for script and process conversion entry points."""

from concurrent.futures import Future
from concurrent.futures.process import BrokenProcessPool
from pathlib import Path
from typing import Any

import pytest

from v8cov.config.models import ConversionConfig
from v8cov.core.errors import CoverageError, ErrorCode
from v8cov.coverage.convert import (
    build_script,
    convert_process,
    convert_script,
    script_entries,
    validate_script,
)
from v8cov.coverage.models import ProcessCoverage

SOURCE = "function f(){return 1;}\nf();\n"


def _script(url: str, *functions: tuple[str, list[tuple[int, int, int]]]) -> dict[str, Any]:
    return {
        "scriptId": "1",
        "url": url,
        "functions": [
            {
                "functionName": name,
                "isBlockCoverage": False,
                "ranges": [{"startOffset": s, "endOffset": e, "count": c} for s, e, c in ranges],
            }
            for name, ranges in functions
        ],
    }


def _f_script(url: str = "file:///f.mjs") -> dict[str, Any]:
    return _script(url, ("", [(0, 29, 1)]), ("f", [(0, 23, 1)]))


# =============================================================================
# Input shapes
# =============================================================================


class TestScriptEntries:
    """Accepted document shapes."""

    def test_process_document(self) -> None:
        entries = script_entries({"result": [_f_script(), _f_script("file:///g.mjs")]})
        assert len(entries) == 2

    def test_bare_list(self) -> None:
        assert len(script_entries([_f_script()])) == 1

    def test_single_script(self) -> None:
        assert script_entries(_f_script()) == [_f_script()]

    def test_validated_process(self) -> None:
        process = ProcessCoverage.model_validate({"result": [_f_script()]})
        assert script_entries(process)[0].url == "file:///f.mjs"

    @pytest.mark.parametrize("result", [5, "scripts", {"url": "a.js"}])
    def test_result_must_be_a_list(self, result: Any) -> None:
        with pytest.raises(CoverageError) as exc_info:
            script_entries({"result": result})
        assert exc_info.value.code == ErrorCode.MALFORMED_INPUT


class TestValidateScript:
    """Boundary validation of one script."""

    def test_missing_url(self) -> None:
        with pytest.raises(CoverageError) as exc_info:
            validate_script({"functions": []})
        assert exc_info.value.code == ErrorCode.MALFORMED_INPUT
        assert "url" in exc_info.value.message

    def test_bad_range_names_the_script(self) -> None:
        data = _script("file:///bad.mjs", ("f", [(10, 5, 1)]))
        with pytest.raises(CoverageError) as exc_info:
            validate_script(data)
        assert exc_info.value.details["url"] == "file:///bad.mjs"


# =============================================================================
# Single-script conversion
# =============================================================================


class TestConvertScript:
    """One ScriptCoverage to one FileCoverage."""

    def test_with_source_text(self) -> None:
        data = convert_script(_f_script(), SOURCE)
        assert data["path"] == "/f.mjs"
        assert data["s"] == {"0": 1, "1": 1}
        assert data["f"] == {"0": 1}

    def test_reads_source_from_disk(self, tmp_path: Path) -> None:
        source_file = tmp_path / "f.mjs"
        source_file.write_text(SOURCE)

        data = convert_script(_f_script(f"file://{source_file}"))

        assert data["path"] == str(source_file)
        assert data["s"] == {"0": 1, "1": 1}

    def test_missing_source(self, tmp_path: Path) -> None:
        with pytest.raises(CoverageError) as exc_info:
            convert_script(_f_script(f"file://{tmp_path / 'missing.mjs'}"))
        assert exc_info.value.code == ErrorCode.SOURCE_NOT_FOUND

    def test_custom_wrapper(self) -> None:
        config = ConversionConfig(cjs_wrapper_prologue="(() => {", cjs_wrapper_epilogue="})()")
        script = build_script(
            _script("/srv/a.js", ("", [(0, 20, 1)]), ("b", [(13, 17, 1)])),
            "a();\nb();\n",
            config=config,
        )
        assert script.header_length == 8
        assert [fn.name for fn in script.functions] == ["b"]
        assert script.functions[0].region.start_offset == 5


# =============================================================================
# Process conversion
# =============================================================================


class TestConvertProcess:
    """Whole NODE_V8_COVERAGE documents."""

    def test_converts_every_script(self) -> None:
        document = {"result": [_f_script("file:///a.mjs"), _f_script("file:///b.mjs")]}
        sources = {"file:///a.mjs": SOURCE, "file:///b.mjs": SOURCE}

        result = convert_process(document, sources=sources)

        assert result.ok
        assert list(result.coverage) == ["/a.mjs", "/b.mjs"]

    def test_internal_scripts_are_skipped(self) -> None:
        document = {
            "result": [
                _script("node:internal/main", ("", [(0, 10, 1)])),
                _script("internal/bootstrap/node.js", ("", [(0, 10, 1)])),
                _f_script(),
            ]
        }

        result = convert_process(document, sources={"file:///f.mjs": SOURCE})

        assert result.skipped == ["node:internal/main", "internal/bootstrap/node.js"]
        assert list(result.coverage) == ["/f.mjs"]

    def test_internal_scripts_included_on_request(self) -> None:
        document = [_script("node:fs", ("", [(0, 4, 1)]))]
        config = ConversionConfig(include_non_file_urls=True)

        result = convert_process(document, sources={"node:fs": "x();"}, config=config)

        assert result.skipped == []
        assert list(result.coverage) == ["node:fs"]

    def test_failed_script_does_not_affect_others(self, tmp_path: Path) -> None:
        missing = f"file://{tmp_path / 'gone.mjs'}"
        document = {
            "result": [
                _f_script(),
                {"url": "file:///bad.mjs", "functions": [{"functionName": "f", "ranges": []}]},
                _f_script(missing),
            ]
        }

        result = convert_process(document, sources={"file:///f.mjs": SOURCE})

        assert not result.ok
        assert list(result.coverage) == ["/f.mjs"]
        assert [(f.url, f.error["error"]) for f in result.failures] == [
            ("file:///bad.mjs", "MALFORMED_INPUT"),
            (missing, "SOURCE_NOT_FOUND"),
        ]

    def test_unreadable_sources_fail_only_their_script(self, tmp_path: Path) -> None:
        undecodable = tmp_path / "latin.mjs"
        undecodable.write_bytes(b"\xff\xfe;\n")
        directory = tmp_path / "pkg.mjs"
        directory.mkdir()
        good = tmp_path / "good.mjs"
        good.write_text(SOURCE)
        document = {
            "result": [
                _f_script(f"file://{undecodable}"),
                _f_script(f"file://{directory}"),
                _f_script(f"file://{good}"),
            ]
        }

        result = convert_process(document)

        assert list(result.coverage) == [str(good)]
        assert [f.error["error"] for f in result.failures] == [
            "SOURCE_UNREADABLE",
            "SOURCE_UNREADABLE",
        ]
        assert result.failures[0].error["details"]["path"] == str(undecodable)

    def test_duplicate_paths_keep_the_last_script(self) -> None:
        first = _script("file:///f.mjs", ("", [(0, 29, 0)]))
        second = _script("file:///f.mjs", ("", [(0, 29, 3)]))

        result = convert_process([first, second], sources={"file:///f.mjs": SOURCE})

        assert result.coverage["/f.mjs"]["s"] == {"0": 3, "1": 3}

    def test_structural_strategy_failure_is_reported(self) -> None:
        document = [_script("file:///f.mjs", ("", [(0, 29, 1)]), ("f", [(1, 23, 1)]))]
        config = ConversionConfig(strategy="structural")

        result = convert_process(document, sources={"file:///f.mjs": SOURCE}, config=config)

        assert result.coverage == {}
        assert result.failures[0].error["error"] == "UNMATCHED_FUNCTION"

    def test_parallel_conversion_keeps_input_order(self, tmp_path: Path) -> None:
        urls = []
        for name in ("c", "a", "b"):
            source_file = tmp_path / f"{name}.mjs"
            source_file.write_text(SOURCE)
            urls.append(f"file://{source_file}")
        config = ConversionConfig(workers=2)

        result = convert_process([_f_script(url) for url in urls], config=config)

        assert result.ok
        assert list(result.coverage) == [url.removeprefix("file://") for url in urls]

    def test_dead_worker_fails_only_its_scripts(self, monkeypatch: pytest.MonkeyPatch) -> None:
        class HalfBrokenExecutor:
            """Runs the first task inline, then behaves as if the pool died."""

            def __init__(self, max_workers: int) -> None:
                self.submitted = 0

            def __enter__(self) -> "HalfBrokenExecutor":
                return self

            def __exit__(self, *exc: object) -> None:
                return None

            def submit(self, fn: Any, *args: Any) -> Future:
                future: Future = Future()
                self.submitted += 1
                if self.submitted == 1:
                    future.set_result(fn(*args))
                else:
                    future.set_exception(BrokenProcessPool("worker killed"))
                return future

        monkeypatch.setattr("v8cov.coverage.convert.ProcessPoolExecutor", HalfBrokenExecutor)
        document = [_f_script("file:///a.mjs"), _f_script("file:///b.mjs")]
        sources = {"file:///a.mjs": SOURCE, "file:///b.mjs": SOURCE}

        result = convert_process(document, sources=sources, config=ConversionConfig(workers=2))

        assert list(result.coverage) == ["/a.mjs"]
        assert [(f.url, f.error["error"]) for f in result.failures] == [
            ("file:///b.mjs", "INTERNAL_ERROR")
        ]
        assert result.failures[0].error["details"]["url"] == "file:///b.mjs"
