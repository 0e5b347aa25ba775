"""
Tests for cv_site.logging_config and cv_site.errors modules.
"""

import logging

import pytest

from cv_site.errors import (
    EXIT_CONFIG_ERROR,
    EXIT_TEMPLATE_ERROR,
    EXIT_VALIDATION_ERROR,
    ConfigurationError,
    CVSiteError,
    TemplateError,
    ValidationError,
    fatal_error,
)
from cv_site.logging_config import (
    PACKAGE_LOGGER,
    configure_logging,
    get_log_level_from_flags,
    level_from_name,
    setup_logging,
)


class TestGetLogLevelFromFlags:
    """Tests for get_log_level_from_flags function."""

    def test_default(self):
        assert get_log_level_from_flags() == logging.WARNING

    def test_verbose(self):
        assert get_log_level_from_flags(verbose=True) == logging.INFO

    def test_quiet_overrides_verbose(self):
        """Test that --quiet wins over --verbose."""
        assert get_log_level_from_flags(quiet=True, verbose=True) == logging.ERROR

    def test_debug_overrides_all(self):
        """Test that --debug wins over everything."""
        assert get_log_level_from_flags(quiet=True, verbose=True, debug=True) == logging.DEBUG


class TestLevelFromName:
    """Tests for level_from_name function."""

    def test_known_names(self):
        assert level_from_name("info") == logging.INFO
        assert level_from_name(" DEBUG ") == logging.DEBUG

    def test_unknown_or_empty(self):
        """Test that unknown names use the default."""
        assert level_from_name("chatty") == logging.WARNING
        assert level_from_name(None, default=logging.ERROR) == logging.ERROR


class TestSetupLogging:
    """Tests for configure_logging and setup_logging."""

    def test_config_level_used_without_flags(self):
        """Test that the configured level applies when no flag is given."""
        setup_logging(config_level="INFO")
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.INFO

    def test_flags_win_over_config(self):
        """Test that an explicit flag beats the configured level."""
        setup_logging(quiet=True, config_level="DEBUG")
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.ERROR

    def test_log_file(self, tmp_path):
        """Test that messages reach the log file."""
        log_file = tmp_path / "logs" / "cvsite.log"
        configure_logging(level=logging.INFO, log_file=log_file)

        logging.getLogger("cv_site.test").info("written to file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "written to file" in log_file.read_text(encoding="utf-8")


class TestErrors:
    """Tests for the error hierarchy and exit codes."""

    def test_exit_codes(self):
        """Test that each error carries its exit code."""
        assert CVSiteError("x").exit_code == 1
        assert ConfigurationError("x").exit_code == EXIT_CONFIG_ERROR
        assert TemplateError("x").exit_code == EXIT_TEMPLATE_ERROR
        assert ValidationError("x").exit_code == EXIT_VALIDATION_ERROR

    def test_hierarchy(self):
        """Test that all errors derive from CVSiteError."""
        for cls in (ConfigurationError, TemplateError, ValidationError):
            assert issubclass(cls, CVSiteError)

    def test_message(self):
        assert ValidationError("bad slug").message == "bad slug"

    def test_fatal_error_exits(self):
        """Test that fatal_error exits with the given code."""
        with pytest.raises(SystemExit) as exc_info:
            fatal_error("boom", EXIT_CONFIG_ERROR)
        assert exc_info.value.code == EXIT_CONFIG_ERROR
