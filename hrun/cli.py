"""hrun CLI - run requests from .http files."""

import logging
import sys
from pathlib import Path

import click

from hrun import executor
from hrun.core import (
    DEFAULT_TIMEOUT,
    apply_env_overrides,
    layer_variables,
    load_config,
    load_env,
    parse_var_args,
    resolve_config_path,
    resolve_request,
)
from hrun.formatting import format_response
from hrun.parser import parse_file
from hrun.runner import CaseOutcome, run_tests
from hrun.sequencer import execute_all

TOOL_HELP = """\
hrun — run HTTP requests from .http files.

\b
FILE FORMAT
───────────
  @baseUrl = https://api.example.com
  @token = dev-token

  ### login
  # Authenticate and keep the session id
  # @capture sessionId = data.session.id
  POST {{baseUrl}}/login
  Content-Type: application/json

  {"user": "admin"}

  ### profile
  GET {{baseUrl}}/me
  Authorization: Bearer {{token}}
  X-Session: {{sessionId}}

\b
  ###  name        Starts a request section
  @name = value    File variable (environment variables of the same name win)
  # comment        Description, when placed before the request line
  # @capture v = p Store JSON path p of the response in variable v
  {{name}}         Replaced by the variable's current value

\b
VARIABLE PRECEDENCE
───────────────────
  1. Values captured by earlier requests in the same run (highest)
  2. -v key=value
  3. variables: in the config defaults
  4. Environment / --env file (only for names declared in the file)
  5. @name = value in the file (lowest)

\b
CONFIG FILE (.hrun.yaml)
────────────────────────
  defaults:
    timeout: 30
    env_file: .env
    variables:
      baseUrl: http://localhost:8080
"""

COMMAND_OPTIONS = [
    click.option(
        "-c",
        "--config",
        "config_file",
        default=None,
        help="Config file path. Default: .hrun.yaml in CWD, then ~/.hrun/config.yaml.",
    ),
    click.option(
        "--env",
        "env_file",
        default=None,
        help="Environment file (.env) to load before resolving variables.",
    ),
    click.option(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds. Default: 30.",
    ),
    click.option(
        "-v",
        "--var",
        multiple=True,
        help="Variable as key=value. Overrides file variables. Repeatable.",
    ),
]


def command_options(func):
    for option in reversed(COMMAND_OPTIONS):
        func = option(func)
    return func


@click.group(help=TOOL_HELP, context_settings={"max_content_width": 88})
@click.option("--debug", is_flag=True, default=False, help="Log debug output to stderr.")
def main(debug):
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )


@main.command("run")
@click.argument("file", type=click.Path(dir_okay=False))
@click.option(
    "--request",
    "request_index",
    type=int,
    default=None,
    metavar="N",
    help="Run only the N-th request (1-based). 0 runs the whole file.",
)
@click.option("--name", "request_name", default=None, help="Run only the request with this name.")
@click.option("--raw", is_flag=True, default=False, help="Output response bodies only.")
@click.option("--no-headers", is_flag=True, default=False, help="Hide response headers.")
@command_options
def run_cmd(file, request_index, request_name, raw, no_headers, config_file, env_file, timeout, var):
    """Execute requests from FILE, all of them unless one is selected."""
    http_file, variables, timeout = _load(file, config_file, env_file, timeout, var)

    if request_name is not None or request_index:
        if request_name is not None:
            request = http_file.find(request_name)
            if request is None:
                click.echo(f"ERROR: request with name '{request_name}' not found", err=True)
                sys.exit(1)
        else:
            if request_index < 1 or request_index > len(http_file.requests):
                click.echo(
                    f"ERROR: request index {request_index} out of range "
                    f"(file has {len(http_file.requests)} requests)",
                    err=True,
                )
                sys.exit(1)
            request = http_file.requests[request_index - 1]
        _cmd_single(request, variables, timeout, raw, no_headers)
        return

    result = execute_all(http_file, variables, timeout=timeout)
    for i, response in enumerate(result.responses, start=1):
        request = response.request
        if not raw:
            click.echo(f"\n=== Request {i}: {request.label} ===")
            if request.name:
                click.echo(f"Name: {request.name}")
        click.echo(format_response(response, raw=raw, show_headers=not no_headers))

    if result.error:
        click.echo(f"ERROR: {result.error}", err=True)
        sys.exit(1)


@main.command("test")
@click.argument("file", type=click.Path(dir_okay=False))
@command_options
def test_cmd(file, config_file, env_file, timeout, var):
    """Run every request in FILE and report which returned 2xx."""
    http_file, variables, timeout = _load(file, config_file, env_file, timeout, var)

    click.echo(f"Running {len(http_file.requests)} tests from {file}\n")
    report = run_tests(http_file, variables, timeout=timeout, on_outcome=_echo_outcome)

    click.echo("\n" + "─" * 50)
    summary = f"Test Results: {report.passed}/{report.total} passed"
    if not report.ok:
        click.echo(f"{summary} ({report.failed} failed)")
        sys.exit(1)
    click.echo(summary)


@main.command("list")
@click.argument("file", type=click.Path(dir_okay=False))
@command_options
def list_cmd(file, config_file, env_file, timeout, var):
    """List the requests and variables declared in FILE."""
    http_file, variables, _ = _load(file, config_file, env_file, timeout, var)

    if not http_file.requests:
        click.echo(f"No requests found in: {file}")
        return

    click.echo(f"Requests from: {file}")
    click.echo(f"{len(http_file.requests)} available:\n")
    for i, request in enumerate(http_file.requests, start=1):
        label = f"  [{i}] {request.name}" if request.name else f"  [{i}]"
        click.echo(f"{label} — line {request.source_line}")
        detail_parts = [request.label]
        if request.captures:
            detail_parts.append(f"captures: {', '.join(c.variable for c in request.captures)}")
        click.echo(f"    {' | '.join(detail_parts)}")
        if request.description:
            click.echo(f"    {request.description}")
        click.echo()

    if variables:
        click.echo("Variables:")
        for key, value in variables.items():
            click.echo(f"  {key} = {value}")


# ── Helpers ──────────────────────────────────────────────────────────────


def _load(file, config_file, env_file, timeout, var):
    """Parse FILE and build the variable store the commands run against."""
    config_path = resolve_config_path(config_file)
    config = load_config(config_path)
    defaults = config.get("defaults", {})

    if env_file:
        if not Path(env_file).exists():
            click.echo(f"Warning: could not load env file {env_file}", err=True)
        env = load_env(env_file)
    else:
        env = load_env(defaults.get("env_file"), base_dir=config.get("_config_dir") or ".")

    try:
        http_file = parse_file(file)
    except (OSError, UnicodeDecodeError) as e:
        click.echo(f"ERROR: failed to parse file: {e}", err=True)
        sys.exit(1)

    apply_env_overrides(http_file.variables, env)
    variables = layer_variables(
        http_file.variables,
        {str(k): str(v) for k, v in (defaults.get("variables") or {}).items()},
        parse_var_args(var),
    )
    return http_file, variables, _resolve_timeout(timeout, defaults.get("timeout"))


def _cmd_single(request, variables, timeout, raw, no_headers):
    resolved = resolve_request(request, variables)
    try:
        response = executor.execute_request(resolved, timeout=timeout)
    except executor.RequestBuildError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)
    if response.error:
        click.echo(f"ERROR: {response.error}", err=True)
        sys.exit(1)
    click.echo(format_response(response, raw=raw, show_headers=not no_headers))


def _echo_outcome(outcome: CaseOutcome):
    if outcome.passed:
        response = outcome.response
        click.echo(
            f"{outcome.title}... PASSED "
            f"(STATUS: {response.status_code}, TIME: {int(response.elapsed_ms)}ms)",
        )
        return

    click.echo(f"{outcome.title}... FAILED")
    if outcome.error:
        click.echo(f"  ERROR: {outcome.error}")
        return
    response = outcome.response
    click.echo(f"  STATUS: {response.status}")
    body = response.body.strip()
    if body and len(body) < 200:
        click.echo(f"  BODY: {body}")


def _resolve_timeout(*sources, default=DEFAULT_TIMEOUT):
    """Return the first truthy timeout from sources, or default."""
    for t in sources:
        if t:
            return t
    return default
