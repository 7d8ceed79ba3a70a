"""Unit tests for the CLI: argument parsing, config loading, subcommands."""

import json
import logging

import pytest

from browser_devtools.cli import serve_cmd
from browser_devtools.cli.main import (
    create_main_parser,
    create_parent_parser,
    load_configuration,
    main,
)
from browser_devtools.cli.scenarios_cmd import scenarios_handler
from browser_devtools.config import ConfigurationError

CONFIG = {
    "playwright": {"baseURL": "http://localhost:3000"},
    "hooks": {
        "modulePath": "hooks.py",
        "scenarios": {
            "mobile": {"use": "start_anonymous", "device": "iPhone 13"},
            "logged-in": {"use": "start_logged_in", "description": "Signed-in user"},
        },
    },
}


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("browser_devtools").setLevel(logging.NOTSET)
    logging.getLogger("websockets").setLevel(logging.NOTSET)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "devtools.config.json"
    path.write_text(json.dumps(CONFIG))
    return path


def parse(*argv):
    return create_main_parser(create_parent_parser()).parse_args(list(argv))


@pytest.mark.unit
class TestArgumentParsing:
    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            parse()

    def test_serve_options(self):
        args = parse(
            "serve", "--no-headless", "--base-url", "http://localhost:3000",
            "--allowed-origin", "http://localhost:3000", "--allowed-origin", "http://api.test",
            "--idle-ms", "60000",
        )

        assert args.headless is False
        assert args.base_url == "http://localhost:3000"
        assert args.allowed_origin == ["http://localhost:3000", "http://api.test"]
        assert args.idle_ms == 60000
        assert args.query_ms is None

    def test_headless_unset_by_default(self):
        assert parse("serve").headless is None

    def test_quiet_and_verbose_exclusive(self):
        with pytest.raises(SystemExit):
            parse("serve", "--quiet", "--verbose")


@pytest.mark.unit
class TestLoadConfiguration:
    def test_explicit_file(self, config_file):
        config = load_configuration(parse("scenarios", "--config", str(config_file)))

        assert config.base_url == "http://localhost:3000"
        assert set(config.scenarios) == {"mobile", "logged-in"}

    def test_explicit_file_missing(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_configuration(parse("scenarios", "--config", str(tmp_path / "absent.json")))

    def test_default_file_in_working_directory(self, config_file, monkeypatch):
        monkeypatch.chdir(config_file.parent)

        config = load_configuration(parse("scenarios"))

        assert config.base_url == "http://localhost:3000"

    def test_no_default_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        config = load_configuration(parse("scenarios"))

        assert config.scenarios == {}

    def test_log_flags(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert load_configuration(parse("serve", "--log-level", "warning")).log_level == "WARNING"
        assert load_configuration(parse("serve", "--verbose")).log_level == "DEBUG"
        assert load_configuration(parse("serve", "--quiet")).log_level == "ERROR"


@pytest.mark.unit
class TestScenariosCommand:
    def test_json_output(self, config_file, capsys):
        exit_code = main(["scenarios", "--config", str(config_file)])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert list(output) == ["logged-in", "mobile"]
        assert output["mobile"] == {"use": "start_anonymous", "description": None, "device": "iPhone 13"}

    def test_text_output(self, config_file, capsys):
        main(["scenarios", "--config", str(config_file), "--format", "text"])

        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "logged-in\tstart_logged_in\tSigned-in user",
            "mobile\tstart_anonymous [iPhone 13]\t",
        ]

    def test_text_output_empty(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        args = parse("scenarios", "--format", "text")
        args.config = load_configuration(args)

        assert scenarios_handler(args) == 0
        assert capsys.readouterr().out.strip() == "No scenarios configured"

    def test_bad_config_exit_code(self, tmp_path, capsys):
        exit_code = main(["scenarios", "--config", str(tmp_path / "absent.json")])

        assert exit_code == 2
        assert "not found" in capsys.readouterr().err


@pytest.mark.unit
class TestServeCommand:
    def test_flags_override_config(self, config_file, monkeypatch):
        served = []

        async def fake_serve(config):
            served.append(config)

        monkeypatch.setattr(serve_cmd, "serve", fake_serve)

        exit_code = main([
            "serve", "--config", str(config_file),
            "--base-url", "http://localhost:4000", "--query-ms", "2000", "--no-headless",
        ])

        assert exit_code == 0
        config = served[0]
        assert config.base_url == "http://localhost:4000"
        assert config.query_ms == 2000
        assert config.headless is False
        assert config.idle_ms == 300_000
