"""Tests for settings, logging setup and the command line."""

import logging
from pathlib import Path
from typing import Iterator

import orjson
import pytest
from PySide6.QtCore import QSettings

from odata_example_gen.__main__ import main
from odata_example_gen.settings import AppSettings, ConfigVersion
from odata_example_gen.utils.logging_config import ColoredFormatter, CSVFormatter, setup_logging


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    return tmp_path / "settings.ini"


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Close and restore root handlers replaced by setup_logging."""
    root = logging.getLogger()
    saved = list(root.handlers)
    saved_level = root.level
    yield
    for handler in root.handlers:
        if handler not in saved:
            handler.close()
    root.handlers[:] = saved
    root.setLevel(saved_level)


class TestSettingsInitialization:
    """Test settings initialization and basic operations."""

    def test_app_settings_init(self, settings_file: Path) -> None:
        """Test AppSettings can be initialized and stamps the current version."""
        settings_obj = AppSettings(storage_path=settings_file)
        assert settings_obj.version == ConfigVersion.CURRENT.value
        assert Path(settings_obj.get_settings_file_path()) == settings_file

    def test_defaults(self, settings_file: Path) -> None:
        """Test default generation and logging settings."""
        settings_obj = AppSettings(storage_path=settings_file)
        assert settings_obj.generation.base_uri == "https://graph.microsoft.com/beta/"
        assert settings_obj.generation.default_id_provider == ""
        assert settings_obj.generation.csdl_path is None
        assert settings_obj.logging.console_logging is False
        assert settings_obj.logging.console_log_level == "WARNING"
        assert settings_obj.logging.file_logging is False

    def test_values_persist(self, settings_file: Path) -> None:
        """Test values written by one instance are read by the next."""
        first = AppSettings(storage_path=settings_file)
        first.generation.base_uri = "https://example.com/v1/"
        first.generation.default_id_provider = "Exchange"
        first.logging.console_logging = True

        second = AppSettings(storage_path=settings_file)
        assert second.generation.base_uri == "https://example.com/v1/"
        assert second.generation.default_id_provider == "Exchange"
        assert second.logging.console_logging is True

    def test_profiles_are_separate(self, settings_file: Path) -> None:
        """Test profiles do not share values."""
        AppSettings(profile="work", storage_path=settings_file).generation.base_uri = "https://work.example.com/"
        assert AppSettings(storage_path=settings_file).generation.base_uri == "https://graph.microsoft.com/beta/"

    def test_invalid_console_level_ignored(self, settings_file: Path) -> None:
        """Test invalid log levels are not stored."""
        settings_obj = AppSettings(storage_path=settings_file)
        settings_obj.logging.console_log_level = "loud"
        assert settings_obj.logging.console_log_level == "WARNING"
        settings_obj.logging.console_log_level = "debug"
        assert settings_obj.logging.console_log_level == "DEBUG"


class TestSettingsValidation:
    """Test settings validation."""

    def test_valid_defaults(self, settings_file: Path) -> None:
        """Test default settings validate."""
        validation = AppSettings(storage_path=settings_file).validate()
        assert validation.is_valid
        assert validation.errors == []

    def test_invalid_values(self, settings_file: Path) -> None:
        """Test relative base URIs and unknown providers are errors."""
        settings_obj = AppSettings(storage_path=settings_file)
        settings_obj.generation.base_uri = "/relative/"
        settings_obj.generation.default_id_provider = "Snowflake"
        validation = settings_obj.validate()
        assert not validation.is_valid
        assert len(validation.errors) == 2

    def test_missing_csdl_is_warning(self, settings_file: Path, tmp_path: Path) -> None:
        """Test a missing default CSDL file only warns."""
        settings_obj = AppSettings(storage_path=settings_file)
        settings_obj.generation.csdl_path = tmp_path / "missing.xml"
        validation = settings_obj.validate()
        assert validation.is_valid
        assert any("missing.xml" in warning for warning in validation.warnings)


class TestSettingsMigration:
    """Test version stamping."""

    def test_older_version_restamped(self, settings_file: Path) -> None:
        """Test settings from another version are restamped and keep their values."""
        raw = QSettings(str(settings_file), QSettings.Format.IniFormat)
        raw.beginGroup("default")
        raw.setValue("app/version", "0.9")
        raw.setValue("generation/base_uri", "https://old.example.com/")
        raw.endGroup()
        raw.sync()

        settings_obj = AppSettings(storage_path=settings_file)
        assert settings_obj.version == ConfigVersion.CURRENT.value == "1.0"
        assert settings_obj.generation.base_uri == "https://old.example.com/"
        assert settings_obj.settings.value("app/migrated_from") == "0.9"

    def test_current_version_untouched(self, settings_file: Path) -> None:
        """Test a second load does not record a migration."""
        AppSettings(storage_path=settings_file)
        settings_obj = AppSettings(storage_path=settings_file)
        assert settings_obj.settings.value("app/migrated_from") is None


class TestUtilsLogging:
    """Test logging configuration."""

    def test_logging_setup_with_settings(self, settings_file: Path, restore_logging: None) -> None:
        """Test logging setup works with settings."""
        settings_obj = AppSettings(storage_path=settings_file)
        assert setup_logging(settings=settings_obj) is None

        logger = logging.getLogger("odata_example_gen")
        assert logger.level == logging.DEBUG

    def test_file_logging(self, settings_file: Path, tmp_path: Path, restore_logging: None) -> None:
        """Test file logging writes CSV lines to the configured path."""
        settings_obj = AppSettings(storage_path=settings_file)
        settings_obj.logging.file_logging = True
        settings_obj.logging.log_file_path = str(tmp_path / "logs" / "run.csv")

        log_path = setup_logging(settings_obj)
        assert log_path == tmp_path / "logs" / "run.csv"
        logging.getLogger("odata_example_gen.test").info('said "hello"')
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert '"said ""hello"""' in log_path.read_text(encoding="utf-8")

    def test_verbose_console(self, settings_file: Path, restore_logging: None) -> None:
        """Test verbose mode adds a DEBUG console handler."""
        setup_logging(AppSettings(storage_path=settings_file), verbose=True)
        levels = [
            handler.level for handler in logging.getLogger().handlers
            if type(handler) is logging.StreamHandler
        ]
        assert levels == [logging.DEBUG]

    def test_csv_formatter(self) -> None:
        """Test CSV records quote fields and escape quotes."""
        record = logging.LogRecord("odata_example_gen.x", logging.INFO, "x.py", 12, 'a "b"', None, None)
        line = CSVFormatter().format(record)
        assert line.endswith('"odata_example_gen.x";"12";"a ""b"""')
        assert ";INFO    ;" in line

    def test_colored_formatter(self) -> None:
        """Test only the level name is colored."""
        record = logging.LogRecord("x", logging.WARNING, "x.py", 1, "careful", None, None)
        line = ColoredFormatter(fmt="%(levelname)s : %(message)s").format(record)
        assert line == "\033[33mWARNING\033[0m : careful"


class TestCommandLine:
    """Test the command line entry point."""

    def test_generate_example(
        self, csdl_path: Path, settings_file: Path, capsys: pytest.CaptureFixture, restore_logging: None
    ) -> None:
        """Test a POST example is printed to stdout."""
        exit_code = main([
            "-c", str(csdl_path), "-m", "post", "-u", "/desks", "--seed", "1",
            "--settings-file", str(settings_file),
        ])
        out = capsys.readouterr().out
        assert exit_code == 0
        lines = out.splitlines()
        assert lines[0] == "POST /desks"
        assert "201 CREATED" in lines
        request = orjson.loads("\n".join(lines[1:lines.index("201 CREATED")]))
        assert request == {
            "label": "label-value",
            "assignedTeam@odata.bind": "https://graph.microsoft.com/beta/departments/id2/teams/id3",
        }

    def test_generation_error_exit_code(
        self, csdl_path: Path, settings_file: Path, capsys: pytest.CaptureFixture, restore_logging: None
    ) -> None:
        """Test generation errors print to stderr and return 1."""
        exit_code = main([
            "-c", str(csdl_path), "-m", "POST", "-u", "/employees/1",
            "--settings-file", str(settings_file),
        ])
        assert exit_code == 1
        assert "collection-valued" in capsys.readouterr().err

    def test_malformed_option(
        self, csdl_path: Path, settings_file: Path, capsys: pytest.CaptureFixture, restore_logging: None
    ) -> None:
        """Test malformed option pairs are reported."""
        exit_code = main([
            "-c", str(csdl_path), "-u", "/employees", "-p", "manager",
            "--settings-file", str(settings_file),
        ])
        assert exit_code == 1
        assert "malformed" in capsys.readouterr().err

    def test_save_defaults(
        self, csdl_path: Path, settings_file: Path, capsys: pytest.CaptureFixture, restore_logging: None
    ) -> None:
        """Test saved defaults are used by later runs."""
        assert main([
            "-c", str(csdl_path), "-u", "/company", "-b", "https://example.com/api/",
            "-i", "@default:Exchange", "--save-defaults", "--settings-file", str(settings_file),
        ]) == 0
        capsys.readouterr()

        saved = AppSettings(storage_path=settings_file)
        assert saved.generation.csdl_path == csdl_path
        assert saved.generation.base_uri == "https://example.com/api/"
        assert saved.generation.default_id_provider == "Exchange"

        assert main(["-u", "/company", "--settings-file", str(settings_file)]) == 0
        assert "https://example.com/api/$metadata#company" in capsys.readouterr().out
