"""
Test suite for the command-line interface.
"""

import sys

import pytest

from jobboard import cli


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"


def run_cli(monkeypatch, *argv) -> None:
    monkeypatch.setattr(sys, "argv", ["jobboard", *argv])
    # Keep the global logging configuration untouched between tests.
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
    cli.main()


class TestParser:
    """Tests for argument parsing."""

    def test_jobs_arguments(self):
        """Test parsing the jobs command."""
        args = cli.create_parser().parse_args(["jobs", "--limit", "5", "--offset", "2"])

        assert args.command == "jobs"
        assert args.limit == 5
        assert args.offset == 2
        assert args.log_level is None
        assert args.log_json is None

    def test_company_requires_id(self):
        """Test that the company command needs an id."""
        with pytest.raises(SystemExit):
            cli.create_parser().parse_args(["company"])

    def test_build_config_overrides(self, db_url):
        """Test that command-line options override the configuration."""
        args = cli.create_parser().parse_args(
            ["jobs", "--database-url", db_url, "--log-level", "DEBUG"]
        )

        config = cli.build_config(args)

        assert config.database_url == db_url
        assert config.log_level == "DEBUG"

    def test_options_before_command(self, db_url):
        """Test that the shared options are accepted before the command name."""
        args = cli.create_parser().parse_args(
            ["--log-level", "DEBUG", "--log-json", "--database-url", db_url, "jobs"]
        )

        assert args.command == "jobs"
        assert args.log_level == "DEBUG"
        assert args.log_json is True
        assert args.database_url == db_url

    def test_command_option_wins(self):
        """Test that an option after the command name overrides one before it."""
        args = cli.create_parser().parse_args(
            ["--log-level", "DEBUG", "jobs", "--log-level", "ERROR"]
        )

        assert args.log_level == "ERROR"

    def test_environment_used_without_options(self, monkeypatch, db_url):
        """Test that unset options leave environment settings in place."""
        monkeypatch.setenv("JOBBOARD_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("JOBBOARD_LOG_JSON", "true")
        args = cli.create_parser().parse_args(["jobs", "--database-url", db_url])

        config = cli.build_config(args)

        assert config.log_level == "WARNING"
        assert config.log_json is True


class TestCommands:
    """Tests running commands against a temporary database."""

    def test_no_command_prints_help(self, monkeypatch):
        """Test that running without a command exits with an error code."""
        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch)

        assert exc_info.value.code == 1

    def test_seed_and_list_jobs(self, monkeypatch, capsys, db_url):
        """Test that listing seeded jobs costs a single company query."""
        run_cli(monkeypatch, "init-db", "--seed", "--database-url", db_url)
        assert "Inserted 5 row(s)." in capsys.readouterr().out

        run_cli(monkeypatch, "jobs", "--database-url", db_url)
        out = capsys.readouterr().out

        assert "Full-Stack Developer" in out
        assert "Resolved 3 job(s) with 1 company query(ies) for 2 company id(s)." in out

    def test_database_url_before_command(self, monkeypatch, capsys, db_url):
        """Test running a command with the database URL given first."""
        run_cli(monkeypatch, "--database-url", db_url, "init-db", "--seed")

        assert "Inserted 5 row(s)." in capsys.readouterr().out

    def test_show_missing_company(self, monkeypatch, capsys, db_url):
        """Test that an unknown company exits with an error code."""
        run_cli(monkeypatch, "init-db", "--database-url", db_url)

        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, "company", "--id", "missing", "--database-url", db_url)

        assert exc_info.value.code == 1
        assert "not found" in capsys.readouterr().err

    def test_show_company(self, monkeypatch, capsys, db_url):
        """Test printing a company with its jobs."""
        run_cli(monkeypatch, "init-db", "--seed", "--database-url", db_url)

        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, "company", "--id", "Gu7QW9LcnF5d", "--database-url", db_url)

        assert exc_info.value.code == 0
        assert "Goobook" in capsys.readouterr().out
