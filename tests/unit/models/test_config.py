"""Tests for run configuration."""

import pytest
from pydantic import ValidationError

from stress_test_runner.models.config import (
    Page,
    RequestKind,
    RewriteMode,
    RunConfiguration,
)
from stress_test_runner.testing.factories import RunConfigurationFactory


def make_config(**overrides: object) -> RunConfiguration:
    """Build a configuration with minimal required fields."""
    fields: dict[str, object] = {
        "file": "/src/main.swift",
        "rewrite_mode": RewriteMode.BASIC,
        "page": Page(index=2, total=5),
        "executable": "/bin/sk-stress-test",
    }
    fields.update(overrides)
    return RunConfiguration.model_validate(fields)


class TestPage:
    """Tests for Page."""

    def test_renders_as_index_over_total(self) -> None:
        """Formats as INDEX/TOTAL."""
        assert str(Page(index=3, total=10)) == "3/10"

    def test_parse(self) -> None:
        """Parses the INDEX/TOTAL form."""
        assert Page.parse("3/10") == Page(index=3, total=10)

    @pytest.mark.parametrize("value", ["3", "a/b", "0/1", "2/1", "1/0", ""])
    def test_parse_rejects_invalid(self, value: str) -> None:
        """Rejects malformed or out-of-range pages."""
        with pytest.raises(ValueError):
            Page.parse(value)

    def test_index_must_not_exceed_total(self) -> None:
        """Rejects an index beyond the total."""
        with pytest.raises(ValidationError, match="exceeds total"):
            Page(index=4, total=3)


class TestStressTesterArguments:
    """Tests for RunConfiguration.stress_tester_arguments."""

    def test_minimal_arguments(self) -> None:
        """Always includes format, page and rewrite mode before the file."""
        config = make_config(compiler_args=["-sdk", "/sdk", "main.swift"])

        assert config.stress_tester_arguments() == [
            "--format",
            "json",
            "--page",
            "2/5",
            "--rewrite-mode",
            "basic",
            "/src/main.swift",
            "swiftc",
            "-sdk",
            "/sdk",
            "main.swift",
        ]

    def test_all_optional_arguments(self) -> None:
        """Appends optional flags in a fixed order before the file."""
        config = make_config(
            rewrite_mode=RewriteMode.INSIDE_OUT,
            limit=7,
            requests=[RequestKind.CURSOR_INFO, RequestKind.CODE_COMPLETE],
            conforming_method_types=["Int", "String"],
            report_responses=True,
            compiler_args=["-O"],
        )

        assert config.stress_tester_arguments() == [
            "--format",
            "json",
            "--page",
            "2/5",
            "--rewrite-mode",
            "insideout",
            "--limit",
            "7",
            "--request",
            "CursorInfo",
            "--request",
            "CodeComplete",
            "--type-list-item",
            "Int",
            "--type-list-item",
            "String",
            "--report-responses",
            "/src/main.swift",
            "swiftc",
            "-O",
        ]

    def test_zero_limit_is_passed(self) -> None:
        """A limit of zero is still forwarded."""
        args = make_config(limit=0).stress_tester_arguments()

        assert args[6:8] == ["--limit", "0"]

    def test_empty_request_list_adds_no_flags(self) -> None:
        """An empty request list contributes no --request flags."""
        args = make_config(requests=[]).stress_tester_arguments()

        assert "--request" not in args

    def test_custom_passthrough_tool(self) -> None:
        """The passthrough tool name follows the file."""
        args = make_config(passthrough_tool="swift-frontend").stress_tester_arguments()

        assert args[-2:] == ["/src/main.swift", "swift-frontend"]

    def test_factory_builds_valid_arguments(self) -> None:
        """Generated configurations end with file, tool and compiler args."""
        config = RunConfigurationFactory.build()

        args = config.stress_tester_arguments()

        assert args[:2] == ["--format", "json"]
        tail = [config.file, config.passthrough_tool, *config.compiler_args]
        assert args[len(args) - len(tail) :] == tail


def test_summary() -> None:
    """Summary names the rewrite mode and page."""
    config = make_config(rewrite_mode=RewriteMode.CONCURRENT)

    assert config.summary == "rewrite concurrent 2/5"


def test_rejects_negative_limit() -> None:
    """Negative limits are invalid."""
    with pytest.raises(ValidationError):
        make_config(limit=-1)


def test_is_immutable() -> None:
    """Configuration cannot be modified after construction."""
    config = make_config()

    with pytest.raises(ValidationError):
        config.limit = 3  # type: ignore[misc]
