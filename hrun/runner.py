"""hrun runner - pass/fail test mode over a request file."""

from collections.abc import Callable, MutableMapping

from hrun import executor
from hrun.core import DEFAULT_TIMEOUT, resolve_request
from hrun.models import HTTPFile, Request


class CaseOutcome:
    """Outcome of one request in test mode."""

    def __init__(
        self,
        index: int,
        request: Request,
        response: executor.Response | None = None,
        error: str | None = None,
    ):
        self.index = index
        self.request = request
        self.response = response
        self.error = error or (response.error if response else None)

    @property
    def passed(self) -> bool:
        return self.error is None and self.response is not None and self.response.ok

    @property
    def title(self) -> str:
        if self.request.name:
            return f"Test {self.index} [{self.request.name}]: {self.request.label}"
        return f"Test {self.index}: {self.request.label}"


class SuiteReport:
    def __init__(self):
        self.outcomes: list[CaseOutcome] = []

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def passed(self) -> int:
        return sum(1 for o in self.outcomes if o.passed)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def ok(self) -> bool:
        return self.failed == 0


def run_tests(
    http_file: HTTPFile,
    variables: MutableMapping[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    on_outcome: Callable[[CaseOutcome], None] | None = None,
) -> SuiteReport:
    """Execute every request and classify it as passed (2xx) or failed.

    Captured values flow forward exactly as in execute_all, but a request
    that cannot be built is just a failed case and the run goes on.
    """
    live = http_file.variables if variables is None else variables
    report = SuiteReport()

    for index, request in enumerate(http_file.requests, start=1):
        resolved = resolve_request(request, live)
        try:
            response = executor.execute_request(resolved, timeout=timeout)
        except executor.RequestBuildError as e:
            outcome = CaseOutcome(index, resolved, error=str(e))
        else:
            live.update(response.captured_variables)
            outcome = CaseOutcome(index, resolved, response)

        report.outcomes.append(outcome)
        if on_outcome:
            on_outcome(outcome)

    return report
