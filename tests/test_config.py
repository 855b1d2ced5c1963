"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest

from statement_ledger.config import (
    CodingConfig,
    Config,
    ConfigValidationError,
    ExtractionConfig,
    create_default_config,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LEDGER_DB_PATH", "LEDGER_CHART_PATH", "LEDGER_PROCESSING_TIMEOUT", "LEDGER_DEFAULT_CURRENCY"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_defaults_are_valid(self):
        config = Config()

        assert config.validate() == []
        assert config.extraction.min_line_length == 10
        assert config.extraction.enable_date_pattern_strategy is False
        assert config.coding.default_income_code == "4000"
        assert config.coding.default_expense_code == "6180"
        assert config.trial_balance.tolerance == 0.01
        assert config.chart_path is None

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")

        assert config.ledger_db_path == Path("data/ledger.db")
        assert config.processing_timeout_seconds == 30.0


class TestLoadConfig:
    """Tests for YAML loading."""

    def test_yaml_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "extraction:\n"
            "  min_line_length: 5\n"
            "  enable_date_pattern_strategy: true\n"
            "coding:\n"
            "  max_suggestions: 3\n"
            "  default_expense_code: 5000\n"
            "trial_balance:\n"
            "  tolerance: 0.5\n"
            f"ledger_db_path: {tmp_path / 'ledger.db'}\n"
            "chart_path: chart.yaml\n"
            "processing_timeout_seconds: 10\n"
        )

        config = load_config(path)

        assert config.extraction.min_line_length == 5
        assert config.extraction.enable_date_pattern_strategy is True
        assert config.coding.max_suggestions == 3
        assert config.coding.default_expense_code == "5000"
        assert config.trial_balance.tolerance == 0.5
        assert config.ledger_db_path == tmp_path / "ledger.db"
        assert config.chart_path == Path("chart.yaml")
        assert config.processing_timeout_seconds == 10.0

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path).validate() == []

    def test_environment_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("ledger_db_path: from-file.db\nprocessing_timeout_seconds: 10\n")
        monkeypatch.setenv("LEDGER_DB_PATH", "/tmp/from-env.db")
        monkeypatch.setenv("LEDGER_PROCESSING_TIMEOUT", "2.5")
        monkeypatch.setenv("LEDGER_DEFAULT_CURRENCY", "EUR")
        monkeypatch.setenv("LEDGER_CHART_PATH", "/etc/chart.yaml")

        config = load_config(path)

        assert config.ledger_db_path == Path("/tmp/from-env.db")
        assert config.processing_timeout_seconds == 2.5
        assert config.extraction.default_currency == "EUR"
        assert config.chart_path == Path("/etc/chart.yaml")

    def test_bad_timeout_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LEDGER_PROCESSING_TIMEOUT", "soon")

        with pytest.raises(ConfigValidationError, match="LEDGER_PROCESSING_TIMEOUT"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_values_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("processing_timeout_seconds: 0\ncoding:\n  max_suggestions: 0\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(path)

        assert "processing_timeout_seconds must be > 0" in str(exc_info.value)
        assert "coding.max_suggestions must be >= 1" in str(exc_info.value)


class TestValidate:
    def test_confidence_ordering(self):
        config = Config(coding=CodingConfig(primary_confidence=0.2, alternative_confidence=0.3))
        assert config.validate() == ["coding confidences must satisfy 0 <= alternative <= primary <= 1"]

    def test_header_columns(self):
        config = Config(extraction=ExtractionConfig(min_header_columns=1))
        assert "extraction.min_header_columns must be >= 2" in config.validate()

    def test_defaults_exist_in_chart(self, chart):
        assert Config().validate(chart) == []

    def test_default_codes_missing_from_chart(self, chart):
        config = Config(coding=CodingConfig(default_income_code="4999", default_expense_code="9999"))

        assert config.validate(chart) == [
            "coding.default_income_code '4999' is not in the chart of accounts",
            "coding.default_expense_code '9999' is not in the chart of accounts",
        ]

    def test_chart_check_skipped_without_chart(self):
        config = Config(coding=CodingConfig(default_expense_code="9999"))
        assert config.validate() == []


class TestCreateDefaultConfig:
    def test_written_config_loads(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"

        create_default_config(path)
        config = load_config(path)

        assert config.validate() == []
        assert config.coding.default_income_code == "4000"
        assert config.processing_timeout_seconds == 30.0
