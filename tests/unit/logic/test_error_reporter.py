# tests/unit/logic/test_error_reporter.py
import pytest

from portfolio_goals_engine.logic.error_reporter import OVERSELL, UNPARSEABLE, ErrorReporter


@pytest.fixture
def error_reporter() -> ErrorReporter:
    """Provides a clean instance of the ErrorReporter."""
    return ErrorReporter()


def test_report_records_code_and_detail(error_reporter: ErrorReporter):
    error_reporter.report("t1", OVERSELL, "Sell quantity (15) exceeds open lots (10)")

    errors = error_reporter.get_errors()

    assert len(errors) == 1
    assert errors[0].trade_id == "t1"
    assert errors[0].reason_codes == [OVERSELL]
    assert errors[0].error_reason == "Sell quantity (15) exceeds open lots (10)"


def test_issues_for_the_same_trade_are_merged_once_per_code(error_reporter: ErrorReporter):
    """
    GIVEN the same trade reported twice under one code and once under another
    WHEN the errors are read back
    THEN each code appears once, in first-reported order, and details are joined
    """
    error_reporter.report("t1", UNPARSEABLE, "first")
    error_reporter.report("t1", OVERSELL, "second")
    error_reporter.report("t1", UNPARSEABLE, "repeat")

    errored = error_reporter.get_errors()[0]

    assert errored.reason_codes == [UNPARSEABLE, OVERSELL]
    assert errored.error_reason == "first; second"


def test_empty_reporter_has_no_errors(error_reporter: ErrorReporter):
    assert error_reporter.get_errors() == []
