"""Verification report for Verify mode.

Every executed check's outcome appears in the report, pass or fail. There
is no way to drop a recorded outcome.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional


@dataclass(frozen=True)
class CheckOutcome:
    name: str
    passed: bool
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "passed": self.passed, "detail": self.detail}


class VerificationReport:
    """Outcomes of the checks run in one Verify turn."""

    PASSED = "passed"
    FAILED = "failed"
    INCOMPLETE = "incomplete"
    EMPTY = "empty"

    def __init__(self, expected: Optional[Iterable[str]] = None):
        self._expected: List[str] = list(expected or [])
        self._outcomes: Dict[str, CheckOutcome] = {}

    @classmethod
    def from_results(
        cls,
        results: Mapping[str, bool],
        expected: Optional[Iterable[str]] = None,
    ) -> "VerificationReport":
        report = cls(expected)
        for name, passed in results.items():
            report.record(name, passed)
        return report

    def expect(self, name: str) -> None:
        if name not in self._expected:
            self._expected.append(name)

    def record(self, name: str, passed: bool, detail: str = "") -> CheckOutcome:
        """Record a check outcome. A check that failed stays failed."""
        previous = self._outcomes.get(name)
        if previous is not None and not previous.passed:
            passed = False
            detail = "; ".join(d for d in (previous.detail, detail) if d)
        outcome = CheckOutcome(name=name, passed=bool(passed), detail=detail)
        self._outcomes[name] = outcome
        self.expect(name)
        return outcome

    @property
    def outcomes(self) -> List[CheckOutcome]:
        return [self._outcomes[name] for name in self._expected if name in self._outcomes]

    @property
    def missing(self) -> List[str]:
        return [name for name in self._expected if name not in self._outcomes]

    @property
    def failed(self) -> List[CheckOutcome]:
        return [o for o in self.outcomes if not o.passed]

    @property
    def status(self) -> str:
        if not self._expected:
            return self.EMPTY
        if self.missing:
            return self.INCOMPLETE
        if self.failed:
            return self.FAILED
        return self.PASSED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "checks": [o.to_dict() for o in self.outcomes],
            "missing": self.missing,
            "passed": sum(1 for o in self.outcomes if o.passed),
            "failed": len(self.failed),
        }
