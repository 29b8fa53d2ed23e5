# src/portfolio_goals_engine/logic/error_reporter.py
from dataclasses import dataclass
from typing import Dict, List

from ..core.models.results import ErroredTrade

# Issue codes beyond the field checks in trade_validation
OVERSELL = "OVERSELL"
UNPARSEABLE = "UNPARSEABLE"


@dataclass(frozen=True)
class TradeIssue:
    code: str
    detail: str


class ErrorReporter:
    """
    Collects the issues that excluded or flagged a trade while holdings were
    computed or the ledger was loaded. A trade keeps one issue per code, in
    the order they were first reported.
    """
    def __init__(self):
        self._issues: Dict[str, List[TradeIssue]] = {}

    def report(self, trade_id: str, code: str, detail: str) -> None:
        issues = self._issues.setdefault(trade_id, [])
        if all(issue.code != code for issue in issues):
            issues.append(TradeIssue(code=code, detail=detail))

    def get_errors(self) -> List[ErroredTrade]:
        return [
            ErroredTrade(
                trade_id=trade_id,
                reason_codes=[issue.code for issue in issues],
                error_reason="; ".join(issue.detail for issue in issues),
            )
            for trade_id, issues in self._issues.items()
        ]
