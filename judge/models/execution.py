from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class CallConvention(str, Enum):
    AUTO = "auto"
    FUNCTION = "function"
    METHOD = "method"


class TestSpec(BaseModel):
    """One example input literal paired with its expected output."""

    __test__ = False

    model_config = ConfigDict(populate_by_name=True)

    input_literal: str = Field(
        validation_alias=AliasChoices("inputLiteral", "input", "input_literal"),
    )
    expected_output_literal: str = Field(
        validation_alias=AliasChoices("expectedOutputLiteral", "expected", "expected_output_literal"),
    )


class Submission(BaseModel):
    source_code: str
    entry_point: str
    call_convention: CallConvention = CallConvention.AUTO
    class_name: str | None = None


class RunRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_code: str = Field(
        min_length=1,
        validation_alias=AliasChoices("sourceCode", "code", "source_code"),
    )
    entry_point: str = Field(
        min_length=1,
        validation_alias=AliasChoices("entryPoint", "functionName", "fn_name", "entry_point"),
    )
    example_input_literal: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "exampleInputLiteral", "exampleInput", "example_input", "example_input_literal"
        ),
    )
    example_output_literal: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "exampleOutputLiteral", "exampleOutput", "example_output", "example_output_literal"
        ),
    )
    test_cases: list[TestSpec] | None = Field(
        default=None,
        validation_alias=AliasChoices("testCases", "test_cases"),
    )
    call_convention: CallConvention = Field(
        default=CallConvention.AUTO,
        validation_alias=AliasChoices("callConvention", "call_convention"),
    )
    class_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("className", "class_name"),
    )

    @model_validator(mode="after")
    def require_cases(self):
        if self.test_cases:
            return self
        if self.example_input_literal is None or self.example_output_literal is None:
            raise ValueError(
                "Provide exampleInputLiteral and exampleOutputLiteral, or a non-empty testCases list"
            )
        return self

    def submission(self) -> Submission:
        return Submission(
            source_code=self.source_code,
            entry_point=self.entry_point,
            call_convention=self.call_convention,
            class_name=self.class_name,
        )

    def cases(self) -> list[TestSpec]:
        """Explicit test cases win over the example pair."""
        if self.test_cases:
            return list(self.test_cases)
        return [
            TestSpec(
                input_literal=self.example_input_literal,
                expected_output_literal=self.example_output_literal,
            )
        ]


class CaseResult(BaseModel):
    input: str | None = None
    expected: str | None = None
    actual: str | None = None
    passed: bool | None = None
    execution_time: float | None = None
    stdout: str | None = None
    error: str | None = None


class ExecutionOutcome(BaseModel):
    per_case_results: list[CaseResult]
    overall_success: bool
    total_execution_time: float


class RunResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    output: str | None = None
    test_results: list[CaseResult] | None = Field(default=None, alias="testResults")
    execution_time: str | None = Field(default=None, alias="executionTime")
    message: str | None = None
    error: str | None = None
    error_type: str | None = Field(default=None, alias="errorType")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ExecutionLogEntry(BaseModel):
    timestamp: str
    entry_point: str
    code_hash: str
    success: bool
    error_type: str | None = None
    case_count: int
    duration_ms: int


class ExecutionLogResponse(BaseModel):
    entries: list[ExecutionLogEntry]
    count: int
