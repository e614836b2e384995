import argparse
from unittest import mock

import pytest

from localhttp.cmdline import _build_parser, _print_reply, _process_options, execute
from localhttp.core.reply import Reply
from localhttp.exceptions import UsageError
from localhttp.http import Request, parse_response
from localhttp.settings import Settings


def _parse(settings, *args):
    return _build_parser(settings).parse_args(list(args))


class TestProcessOptions:
    def setup_method(self):
        self.settings = Settings()

    def test_target_required(self):
        opts = _parse(self.settings, "--socket", "/run/daemon.sock")
        with pytest.raises(UsageError) as excinfo:
            _process_options(self.settings, opts)
        assert excinfo.value.print_help

    def test_socket_required(self):
        opts = _parse(self.settings, "/1.0")
        with pytest.raises(UsageError, match="--socket") as excinfo:
            _process_options(self.settings, opts)
        assert not excinfo.value.print_help

    def test_set_options(self):
        opts = _parse(
            self.settings,
            "--socket",
            "/run/daemon.sock",
            "-s",
            "REPLY_HOST=snapd",
            "-s",
            "REPLY_SETTLE_DELAY=0.1",
            "/1.0",
        )
        _process_options(self.settings, opts)
        assert self.settings["REPLY_HOST"] == "snapd"
        assert self.settings.getfloat("REPLY_SETTLE_DELAY") == 0.1
        assert self.settings.getpriority("REPLY_HOST") == 40

    def test_invalid_set_option(self):
        opts = _parse(self.settings, "--socket", "s", "-s", "NOVALUE", "/1.0")
        with pytest.raises(UsageError, match="NAME=VALUE"):
            _process_options(self.settings, opts)

    def test_timeout(self):
        opts = _parse(self.settings, "--socket", "s", "--timeout", "2.5", "/1.0")
        _process_options(self.settings, opts)
        assert self.settings.getfloat("REPLY_TIMEOUT") == 2.5

    def test_negative_timeout(self):
        opts = _parse(self.settings, "--socket", "s", "--timeout", "-1", "/1.0")
        with pytest.raises(UsageError, match="negative"):
            _process_options(self.settings, opts)

    @pytest.mark.parametrize(
        ("override", "message"),
        [
            ("REPLY_TIMEOUT=-1", "REPLY_TIMEOUT must not be negative"),
            ("REPLY_SETTLE_DELAY=-0.5", "REPLY_SETTLE_DELAY must not be negative"),
            ("REPLY_TIMEOUT=soon", "Invalid REPLY_TIMEOUT value"),
        ],
    )
    def test_invalid_reply_settings(self, override, message):
        opts = _parse(self.settings, "--socket", "s", "-s", override, "/1.0")
        with pytest.raises(UsageError, match=message) as excinfo:
            _process_options(self.settings, opts)
        assert not excinfo.value.print_help

    def test_timeout_overrides_set(self):
        opts = _parse(
            self.settings, "--socket", "s", "-s", "REPLY_TIMEOUT=9", "--timeout", "1", "/"
        )
        _process_options(self.settings, opts)
        assert self.settings.getfloat("REPLY_TIMEOUT") == 1

    def test_logging_options(self):
        opts = _parse(
            self.settings, "--socket", "s", "--logfile", "out.log", "-L", "INFO", "/"
        )
        _process_options(self.settings, opts)
        assert self.settings["LOG_FILE"] == "out.log"
        assert self.settings["LOG_LEVEL"] == "INFO"
        assert self.settings.getbool("LOG_ENABLED")

    def test_nolog(self):
        opts = _parse(self.settings, "--socket", "s", "--nolog", "/")
        _process_options(self.settings, opts)
        assert not self.settings.getbool("LOG_ENABLED")


class TestPrintReply:
    def _reply(self, data):
        reply = Reply(Request("/1.0"))
        reply.complete(parse_response(data, eof=True))
        return reply

    def test_success(self, capsysbinary):
        reply = self._reply(b"HTTP/1.1 200 OK\r\nContent-Length: 4\r\n\r\n{}{}")
        assert _print_reply(reply) == 0
        out, err = capsysbinary.readouterr()
        assert out == b"{}{}\n"
        assert err == b""

    def test_http_error(self, capsysbinary):
        reply = self._reply(
            b"HTTP/1.1 404 Not Found\r\nContent-Length: 7\r\n\r\nmissing"
        )
        assert _print_reply(reply) == 1
        out, err = capsysbinary.readouterr()
        assert out == b"missing\n"
        assert err == b"localhttp: NotFound: Not Found\n"

    def test_canceled(self, capsysbinary):
        reply = Reply(Request("/1.0"))
        reply.abort()
        assert _print_reply(reply) == 1
        out, err = capsysbinary.readouterr()
        assert out == b""
        assert err == b"localhttp: Canceled: Operation canceled\n"


class TestExecute:
    def test_usage_error_exits_with_2(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            execute(["localhttp", "/1.0"], settings=Settings())
        assert excinfo.value.code == 2
        assert "--socket is required" in capsys.readouterr().err

    def test_negative_setting_exits_with_2(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            execute(["localhttp", "--socket", "s", "-s", "REPLY_TIMEOUT=-1", "/1.0"])
        assert excinfo.value.code == 2
        assert "REPLY_TIMEOUT must not be negative" in capsys.readouterr().err

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            execute(["localhttp", "--version"])
        assert excinfo.value.code == 0
        assert capsys.readouterr().out.startswith("localhttp ")

    @mock.patch("localhttp.cmdline.configure_logging")
    @mock.patch("localhttp.cmdline.fetch", return_value=1)
    def test_fetch(self, fetch, configure_logging):
        settings = Settings()
        with pytest.raises(SystemExit) as excinfo:
            execute(
                [
                    "localhttp",
                    "--socket",
                    "/run/daemon.sock",
                    "-X",
                    "post",
                    "-d",
                    "a=1",
                    "/v2/snaps",
                ],
                settings=settings,
            )
        assert excinfo.value.code == 1
        configure_logging.assert_called_once_with(settings)
        path, request, passed_settings = fetch.call_args[0]
        assert path == "/run/daemon.sock"
        assert request.method == "POST"
        assert request.target == "/v2/snaps"
        assert request.body == b"a=1"
        assert passed_settings is settings

    def test_build_parser_defaults(self):
        opts = _build_parser(Settings()).parse_args([])
        assert isinstance(opts, argparse.Namespace)
        assert opts.method == "GET"
        assert opts.set == []
        assert opts.timeout is None
