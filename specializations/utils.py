import contextlib
import http.server
import sys
import typing
import webbrowser

__all__ = (
    "catch_exceptions",
    "patch_sys_argv",
    "browse",
)


@contextlib.contextmanager
def catch_exceptions() -> typing.Generator[list[BaseException], None, None]:
    """Gather the exception a program ends with, so the report still gets made.

    A KeyboardInterrupt stops the report as well, so it is not gathered.
    """
    caught: list[BaseException] = []
    try:
        yield caught
    except KeyboardInterrupt:
        raise
    except BaseException as exception:
        caught.append(exception)


@contextlib.contextmanager
def patch_sys_argv(
    program: str, argv: typing.Iterable[str]
) -> typing.Generator[None, None, None]:
    """Make sys.argv look the way it would if ``program`` had been launched."""
    saved = sys.argv[:]
    sys.argv[:] = [program, *argv]
    try:
        yield
    finally:
        sys.argv[:] = saved


def browse(page: str) -> None:
    """Open a web browser on a report, and serve it once."""
    served = []

    class RequestHandler(http.server.BaseHTTPRequestHandler):
        """Serve the report at ``/``; anything else (a favicon) is missing."""

        def do_GET(self) -> None:
            if self.path != "/":
                self.send_error(404)
                return
            body = page.encode("utf-8")
            self.send_response(200)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
            served.append(self.path)

        def log_message(self, *_: object) -> None:
            """Don't log requests or errors."""

    with http.server.HTTPServer(("localhost", 0), RequestHandler) as server:
        webbrowser.open_new_tab(f"http://localhost:{server.server_port}/")
        while not served:
            server.handle_request()
