"""hrun sequencer - run a file's requests in order, threading captures forward."""

import logging
from collections.abc import MutableMapping

from hrun import executor
from hrun.core import DEFAULT_TIMEOUT, resolve_request
from hrun.models import HTTPFile, Request

logger = logging.getLogger(__name__)


class RunResult:
    """Responses gathered by execute_all, and the error that stopped it."""

    def __init__(self):
        self.responses: list[executor.Response] = []
        self.error: str | None = None
        self.failed_request: Request | None = None

    @property
    def completed(self) -> bool:
        return self.error is None


def execute_all(
    http_file: HTTPFile,
    variables: MutableMapping[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> RunResult:
    """Execute every request of http_file in file order.

    variables is the live store (the file's own variables by default).
    Each request is resolved against it, and the values it captures are
    written back before the next request is resolved.

    A response carrying an error does not stop the run. A request that
    cannot even be built does: the responses gathered so far are returned
    together with the error.
    """
    live = http_file.variables if variables is None else variables
    result = RunResult()

    for request in http_file.requests:
        resolved = resolve_request(request, live)
        try:
            response = executor.execute_request(resolved, timeout=timeout)
        except executor.RequestBuildError as e:
            logger.debug("Stopping run at %s: %s", resolved.label, e)
            result.error = str(e)
            result.failed_request = resolved
            return result

        result.responses.append(response)
        live.update(response.captured_variables)

    return result
