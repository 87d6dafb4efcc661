"""
Front controller execution over CGI.

PHP entry points are run with ``php-cgi`` (override with VALET_CGI_BINARY)
inside the front controller's directory. Anything without an interpreter,
such as an ``index.html`` entry point, is sent as a file.
"""

import logging
import os
import subprocess
from pathlib import Path
from urllib.parse import quote

from starlette.responses import FileResponse, PlainTextResponse, Response

from .. import __version__
from .dispatcher import HandOff

logger = logging.getLogger("valet.router.executor")

DOCUMENT_ROOT_DIRS = ("public", "web", "pub")

_SKIPPED_CGI_HEADERS = {"status", "content-length", "transfer-encoding", "connection"}

# "Proxy" must never reach php-cgi as HTTP_PROXY (httpoxy).
_SKIPPED_REQUEST_HEADERS = {"content-type", "content-length", "proxy"}


def default_interpreters() -> dict[str, str]:
    return {".php": os.getenv("VALET_CGI_BINARY", "php-cgi")}


def default_timeout() -> float | None:
    value = os.getenv("VALET_CGI_TIMEOUT", "").strip()
    return float(value) if value else None


def document_root(handoff: HandOff) -> Path:
    """The project's web root: public/, web/ or pub/ when the entry point lives there."""
    for name in DOCUMENT_ROOT_DIRS:
        candidate = handoff.site_path / name
        if candidate in handoff.front_controller.parents:
            return candidate
    return handoff.site_path


def build_environ(handoff: HandOff, base_env: dict[str, str] | None = None) -> dict[str, str]:
    """CGI/1.1 environment for a hand-off."""
    context = handoff.context
    docroot = document_root(handoff)
    server_name, _, port = context.host.partition(":")

    if handoff.uri == context.uri:
        request_uri = context.raw_uri
    else:
        request_uri = quote(handoff.uri, safe="/:@!$&'()*+,;=-._~")
        if context.query_string:
            request_uri = f"{request_uri}?{context.query_string}"

    env = {"PATH": os.environ.get("PATH", "/usr/local/bin:/usr/bin:/bin")}
    if base_env:
        env.update(base_env)
    env.update(
        {
            "GATEWAY_INTERFACE": "CGI/1.1",
            "SERVER_SOFTWARE": f"valet-router/{__version__}",
            "SERVER_PROTOCOL": "HTTP/1.1",
            "SERVER_NAME": server_name,
            "SERVER_PORT": port or ("443" if context.scheme == "https" else "80"),
            "REQUEST_METHOD": context.method,
            "REQUEST_URI": request_uri,
            "QUERY_STRING": context.query_string,
            "SCRIPT_FILENAME": str(handoff.front_controller),
            "SCRIPT_NAME": "/" + handoff.front_controller.relative_to(docroot).as_posix(),
            "DOCUMENT_ROOT": str(docroot),
            "REMOTE_ADDR": context.remote_addr,
            "REQUEST_SCHEME": context.scheme,
            "REDIRECT_STATUS": "200",
        }
    )
    if context.scheme == "https":
        env["HTTPS"] = "on"
    if context.body:
        env["CONTENT_LENGTH"] = str(len(context.body))
    if "content-type" in context.headers:
        env["CONTENT_TYPE"] = context.headers["content-type"]

    for name, value in context.headers.items():
        if name in _SKIPPED_REQUEST_HEADERS:
            continue
        env["HTTP_" + name.upper().replace("-", "_")] = value
    return env


def parse_cgi_response(output: bytes) -> Response:
    """
    Turn raw CGI output into a response.

    ``Status:`` sets the status code; a ``Location:`` header without one
    means a 302 redirect.
    """
    found = [(output.find(sep), sep) for sep in (b"\r\n\r\n", b"\n\n") if output.find(sep) != -1]
    if not found:
        logger.warning("Front controller produced no CGI header block (%d bytes)", len(output))
        return PlainTextResponse("Front controller returned an invalid response.", status_code=502)
    index, separator = min(found)
    head, body = output[:index], output[index + len(separator) :]

    status_code = 200
    headers: list[tuple[str, str]] = []
    has_location = False
    for line in head.decode("latin-1").splitlines():
        name, sep, value = line.partition(":")
        if not sep:
            continue
        name, value = name.strip(), value.strip()
        lname = name.lower()
        if lname == "status":
            try:
                status_code = int(value.split()[0])
            except (ValueError, IndexError):
                logger.warning("Ignoring malformed CGI status %r", value)
            continue
        if lname == "location":
            has_location = True
        if lname in _SKIPPED_CGI_HEADERS:
            continue
        headers.append((name, value))

    if has_location and status_code == 200:
        status_code = 302

    response = Response(content=body, status_code=status_code)
    for name, value in headers:
        response.headers.append(name, value)
    return response


class CGIExecutor:
    """Runs a HandOff and returns its response. No retries."""

    def __init__(self, interpreters: dict[str, str] | None = None, timeout: float | None = None) -> None:
        self.interpreters = interpreters if interpreters is not None else default_interpreters()
        self.timeout = timeout if timeout is not None else default_timeout()

    def execute(self, handoff: HandOff) -> Response:
        binary = self.interpreters.get(handoff.front_controller.suffix)
        if binary is None:
            return FileResponse(handoff.front_controller)

        try:
            result = subprocess.run(
                [binary],
                input=handoff.context.body,
                cwd=str(handoff.working_directory),
                env=build_environ(handoff),
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError:
            logger.error("CGI interpreter %r not found (set VALET_CGI_BINARY)", binary)
            return PlainTextResponse(f"Interpreter {binary!r} is not installed.", status_code=502)
        except subprocess.TimeoutExpired:
            logger.error("Front controller %s timed out after %ss", handoff.front_controller, self.timeout)
            return PlainTextResponse("Front controller timed out.", status_code=504)

        if result.stderr:
            logger.warning("%s: %s", handoff.front_controller, result.stderr.decode("utf-8", "replace").strip())
        if result.returncode != 0 and not result.stdout:
            logger.error("Front controller %s exited with %d", handoff.front_controller, result.returncode)
            return PlainTextResponse("Front controller failed.", status_code=502)
        return parse_cgi_response(result.stdout)
