from __future__ import annotations

from canvasdoc.core.errors import DocumentError, ErrorContainer, ErrorKind
from canvasdoc.core.lifecycle import run_action, run_load


def test_run_load_returns_value_without_errors() -> None:
    errors = ErrorContainer()
    assert run_load(lambda: 42, errors) == 42
    assert not errors.has_errors
    assert len(errors) == 0


def test_document_error_is_recorded_under_its_kind() -> None:
    def body():
        raise DocumentError(ErrorKind.MISSING_MANDATORY_SHARD, "Missing header file")

    errors = ErrorContainer()
    assert run_load(body, errors) is None
    assert errors.kinds() == [ErrorKind.MISSING_MANDATORY_SHARD]
    assert str(errors.errors[0]) == "MissingMandatoryShard: Missing header file"


def test_unreported_exception_becomes_one_internal_error() -> None:
    def body():
        raise KeyError("boom")

    errors = ErrorContainer()
    assert run_load(body, errors) is None
    assert errors.kinds() == [ErrorKind.INTERNAL_ERROR]
    assert "KeyError" in errors.errors[0].message


def test_exception_after_reported_error_adds_nothing() -> None:
    errors = ErrorContainer()

    def body():
        errors.consistency_violation("first")
        raise RuntimeError("follow-up")

    run_action(body, errors)
    assert errors.kinds() == [ErrorKind.CONSISTENCY_VIOLATION]


def test_recorded_errors_without_exception_still_fail_the_load() -> None:
    errors = ErrorContainer()

    def body():
        errors.template_parse_failure("bad")
        return object()

    assert run_load(body, errors) is None


def test_container_iteration_and_warnings() -> None:
    errors = ErrorContainer()
    errors.warn("heads up")
    errors.unsupported_mutation("nope")

    assert errors
    assert errors.warnings == ("heads up",)
    assert [r.message for r in errors] == ["nope"]
    assert "UnsupportedMutation: nope" in str(errors)
