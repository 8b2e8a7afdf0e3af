"""Configuration of a single stress tester run."""

from collections.abc import Sequence
from enum import StrEnum
from typing import Self

from pydantic import Field, model_validator

from stress_test_runner.models.base import Model


class RewriteMode(StrEnum):
    """How the stress tester rewrites the source file between requests."""

    NONE = "none"
    BASIC = "basic"
    CONCURRENT = "concurrent"
    INSIDE_OUT = "insideout"


class RequestKind(StrEnum):
    """SourceKit request kinds the stress tester can exercise."""

    CURSOR_INFO = "CursorInfo"
    RANGE_INFO = "RangeInfo"
    CODE_COMPLETE = "CodeComplete"
    TYPE_CONTEXT_INFO = "TypeContextInfo"
    CONFORMING_METHOD_LIST = "ConformingMethodList"
    COLLECT_EXPRESSION_TYPE = "CollectExpressionType"
    FORMAT = "Format"
    TEST_MODULE = "TestModule"
    ALL = "All"


class Page(Model):
    """Slice of the workload covered by one run."""

    index: int = Field(..., ge=1, description="1-based page index")
    total: int = Field(..., ge=1, description="Total number of pages")

    @model_validator(mode="after")
    def _check_index_within_total(self) -> Self:
        if self.index > self.total:
            raise ValueError(f"page index {self.index} exceeds total {self.total}")
        return self

    @classmethod
    def parse(cls, value: str) -> "Page":
        """Parse the ``index/total`` form used on the command line."""
        index, sep, total = value.partition("/")
        if not sep:
            raise ValueError(f"Invalid page '{value}', expected INDEX/TOTAL")
        return cls(index=int(index), total=int(total))

    def __str__(self) -> str:
        return f"{self.index}/{self.total}"


class RunConfiguration(Model):
    """Everything needed to invoke the stress tester against one file."""

    file: str = Field(..., description="Source file to stress test")
    rewrite_mode: RewriteMode = Field(..., description="Rewrite mode to apply")
    requests: Sequence[RequestKind] | None = Field(
        default=None, description="Request kinds to exercise (None means all)"
    )
    conforming_method_types: Sequence[str] | None = Field(
        default=None, description="Types for ConformingMethodList requests"
    )
    limit: int | None = Field(
        default=None, ge=0, description="Maximum number of requests to perform"
    )
    page: Page = Field(..., description="Page of the workload covered by this run")
    report_responses: bool = Field(
        default=False, description="Ask the stress tester to report responses"
    )
    compiler_args: Sequence[str] = Field(
        default_factory=list, description="Compiler arguments forwarded verbatim"
    )
    executable: str = Field(..., description="Path to the stress tester executable")
    passthrough_tool: str = Field(
        default="swiftc", description="Tool name preceding the compiler arguments"
    )
    terminate_timeout: float = Field(
        default=5.0, gt=0, description="Seconds to wait after SIGTERM before SIGKILL"
    )

    def stress_tester_arguments(self) -> Sequence[str]:
        """Build the stress tester argument vector (executable excluded).

        Options come first, then the file, the passthrough tool name and the
        forwarded compiler arguments. The stress tester parses the trailing
        part positionally so the order is fixed.
        """
        args = [
            "--format",
            "json",
            "--page",
            str(self.page),
            "--rewrite-mode",
            self.rewrite_mode.value,
        ]
        if self.limit is not None:
            args += ["--limit", str(self.limit)]
        if self.requests is not None:
            for request in self.requests:
                args += ["--request", request.value]
        if self.conforming_method_types is not None:
            for type_name in self.conforming_method_types:
                args += ["--type-list-item", type_name]
        if self.report_responses:
            args.append("--report-responses")

        return [*args, self.file, self.passthrough_tool, *self.compiler_args]

    @property
    def summary(self) -> str:
        """Short progress description, independent of the outcome."""
        return f"rewrite {self.rewrite_mode.value} {self.page}"
