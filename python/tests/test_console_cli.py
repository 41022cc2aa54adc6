import pytest

from hcjf_console import cli
from hcjf_console.context import DEFAULT_COMMAND_TIMEOUT_MS, DEFAULT_PAGE_SIZE


@pytest.mark.parametrize("argv", [[], ["localhost"], ["localhost", "port"], ["localhost", "5900", "extra"]])
def test_bad_arguments_exit_non_zero(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    assert excinfo.value.code != 0
    assert "usage:" in capsys.readouterr().err


def test_build_context_uses_defaults():
    args = cli.build_arg_parser().parse_args(["db.local", "7000"])
    ctx = cli.build_context(args)
    assert ctx.host == "db.local"
    assert ctx.port == 7000
    assert ctx.timeout_ms == DEFAULT_COMMAND_TIMEOUT_MS
    assert ctx.page_size == DEFAULT_PAGE_SIZE
    assert ctx.prompt == ":"


def test_options_override_context():
    args = cli.build_arg_parser().parse_args(
        ["db.local", "7000", "--timeout", "250", "--page-size", "20", "--prompt", ">", "--date-format", "%d/%m/%Y"]
    )
    ctx = cli.build_context(args)
    assert ctx.timeout_ms == 250
    assert ctx.timeout == 0.25
    assert ctx.page_size == 20
    assert ctx.prompt == ">"
    assert ctx.date_format == "%d/%m/%Y"


def test_non_positive_timeout_is_rejected():
    with pytest.raises(SystemExit):
        cli.build_arg_parser().parse_args(["db.local", "7000", "--timeout", "0"])


def test_log_level_defaults_from_environment(monkeypatch):
    monkeypatch.setenv("HCJF_CONSOLE_LOG", "DEBUG")
    args = cli.build_arg_parser().parse_args(["db.local", "7000"])
    assert args.log_level == "DEBUG"


def test_main_runs_console(monkeypatch):
    seen = {}

    class FakeConsole:
        def __init__(self, ctx):
            seen["ctx"] = ctx

        def run(self):
            return 3

    monkeypatch.setattr(cli, "Console", FakeConsole)
    monkeypatch.setattr(cli, "_configure_logging", lambda level, log_file=None: None)
    assert cli.main(["db.local", "7000"]) == 3
    assert seen["ctx"].port == 7000


def test_keyboard_interrupt_exits_cleanly(monkeypatch):
    class InterruptedConsole:
        def __init__(self, ctx):
            pass

        def run(self):
            raise KeyboardInterrupt

    monkeypatch.setattr(cli, "Console", InterruptedConsole)
    monkeypatch.setattr(cli, "_configure_logging", lambda level, log_file=None: None)
    assert cli.main(["db.local", "7000"]) == 0
