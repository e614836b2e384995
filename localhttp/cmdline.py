from __future__ import annotations

import argparse
import sys
from typing import TYPE_CHECKING

from w3lib.url import safe_url_string

import localhttp
from localhttp.core.webclient import request_unix
from localhttp.exceptions import UsageError
from localhttp.http import Request
from localhttp.settings import Settings
from localhttp.utils.log import configure_logging, log_reactor_info
from localhttp.utils.python import arglist_to_dict

if TYPE_CHECKING:
    from collections.abc import Callable

    # typing.ParamSpec requires Python 3.10
    from typing_extensions import ParamSpec

    from localhttp.core.reply import Reply

    _P = ParamSpec("_P")


def _build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="localhttp",
        usage="localhttp [options] <target>",
        description=(
            "Send one HTTP request to a daemon listening on a Unix socket and"
            " print the response body to stdout. You may want to use --nolog"
            " to disable logging"
        ),
    )
    parser.add_argument("target", nargs="?", help="request target, e.g. /1.0")
    parser.add_argument(
        "--socket", metavar="PATH", help="path of the Unix socket to connect to"
    )
    parser.add_argument(
        "-X", "--method", default="GET", help="request method (default: GET)"
    )
    parser.add_argument(
        "-d", "--data", default=None, help="request body, sent with POST and PUT"
    )
    parser.add_argument(
        "--timeout",
        metavar="SECONDS",
        type=float,
        default=None,
        help=f"response deadline (default: {settings['REPLY_TIMEOUT']})",
    )
    group = parser.add_argument_group(title="Global Options")
    group.add_argument(
        "--logfile", metavar="FILE", help="log file. if omitted stderr will be used"
    )
    group.add_argument(
        "-L",
        "--loglevel",
        metavar="LEVEL",
        default=None,
        help=f"log level (default: {settings['LOG_LEVEL']})",
    )
    group.add_argument(
        "--nolog", action="store_true", help="disable logging completely"
    )
    group.add_argument(
        "-s",
        "--set",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="set/override setting (may be repeated)",
    )
    group.add_argument(
        "--version", action="version", version=f"localhttp {localhttp.__version__}"
    )
    return parser


def _process_options(settings: Settings, opts: argparse.Namespace) -> None:
    if not opts.target:
        raise UsageError("a request target is required")
    if not opts.socket:
        raise UsageError("--socket is required", print_help=False)

    try:
        settings.setdict(arglist_to_dict(opts.set), priority="cmdline")
    except ValueError:
        raise UsageError("Invalid -s value, use -s NAME=VALUE", print_help=False)

    if opts.timeout is not None:
        settings.set("REPLY_TIMEOUT", opts.timeout, priority="cmdline")

    for name in ("REPLY_TIMEOUT", "REPLY_SETTLE_DELAY"):
        try:
            value = settings.getfloat(name)
        except ValueError:
            raise UsageError(f"Invalid {name} value, expected seconds", print_help=False)
        if value < 0:
            raise UsageError(f"{name} must not be negative", print_help=False)

    if opts.logfile:
        settings.set("LOG_ENABLED", True, priority="cmdline")
        settings.set("LOG_FILE", opts.logfile, priority="cmdline")

    if opts.loglevel:
        settings.set("LOG_ENABLED", True, priority="cmdline")
        settings.set("LOG_LEVEL", opts.loglevel, priority="cmdline")

    if opts.nolog:
        settings.set("LOG_ENABLED", False, priority="cmdline")


def _run_print_help(
    parser: argparse.ArgumentParser,
    func: Callable[_P, None],
    *a: _P.args,
    **kw: _P.kwargs,
) -> None:
    try:
        func(*a, **kw)
    except UsageError as e:
        if str(e):
            parser.error(str(e))
        if e.print_help:
            parser.print_help()
        sys.exit(2)


def _print_reply(reply: Reply) -> int:
    body = reply.read()
    if body:
        sys.stdout.buffer.write(body + b"\n")
        sys.stdout.buffer.flush()
    if reply.error is not None:
        sys.stderr.write(f"localhttp: {reply.error}: {reply.error_string}\n")
        return 1
    return 0


def fetch(path: str, request: Request, settings: Settings) -> int:
    """Run the reactor until the reply to ``request`` is finished and print
    it. Return the process exit code."""
    from twisted.internet import reactor

    log_reactor_info()
    exitcode = []
    reply = request_unix(path, request, settings, reactor)
    reply.finished.addCallback(_print_reply)
    reply.finished.addCallback(exitcode.append)
    reply.finished.addBoth(lambda _: reactor.stop())
    reactor.run()
    return exitcode[0] if exitcode else 1


def execute(argv: list[str] | None = None, settings: Settings | None = None) -> None:
    if argv is None:
        argv = sys.argv

    if settings is None:
        settings = Settings()

    parser = _build_parser(settings)
    opts = parser.parse_args(args=argv[1:])
    _run_print_help(parser, _process_options, settings, opts)

    configure_logging(settings)
    request = Request(
        safe_url_string(opts.target),
        method=opts.method,
        body=opts.data,
    )
    sys.exit(fetch(opts.socket, request, settings))


if __name__ == "__main__":
    execute()
