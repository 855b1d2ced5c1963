"""
Configuration management (SSOT).

This module defines ALL configuration for the statement ledger.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- Extraction thresholds are shared by every strategy in the fallback chain
- Coding defaults must reference accounts present in the chart of accounts
- The balance tolerance is expressed in currency units (0.01 = one penny)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .accounts import ChartOfAccounts


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class ExtractionConfig:
    """Statement text extraction settings."""

    # Lines shorter than this are ignored when looking for a header row
    min_line_length: int = 10
    # A header row must split into at least this many columns
    min_header_columns: int = 3
    # ISO currency used when the statement does not reveal one
    default_currency: str = "GBP"
    # Opt-in: the legacy date-pattern strategy (guesses OUT/IN column order)
    enable_date_pattern_strategy: bool = False


@dataclass
class CodingConfig:
    """Auto-coding and suggestion settings."""

    primary_confidence: float = 0.9
    alternative_confidence: float = 0.3
    # Confidence recorded when no keyword rule matched and a default code was used
    fallback_confidence: float = 0.4
    max_suggestions: int = 5
    default_income_code: str = "4000"
    default_expense_code: str = "6180"


@dataclass
class TrialBalanceConfig:
    """Trial balance validation settings."""

    # Allowed |debits - credits| difference for a balanced ledger
    tolerance: float = 0.01


@dataclass
class Config:
    """Application configuration (SSOT).

    All configuration is centralized here. No other module should define
    configuration keys or defaults.
    """

    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    coding: CodingConfig = field(default_factory=CodingConfig)
    trial_balance: TrialBalanceConfig = field(default_factory=TrialBalanceConfig)
    ledger_db_path: Path = field(default_factory=lambda: Path("data/ledger.db"))
    # Optional YAML chart of accounts; built-in UK chart when unset
    chart_path: Path | None = None
    # Wall-clock limit for one statement run (seconds)
    processing_timeout_seconds: float = 30.0

    def validate(self, chart: ChartOfAccounts | None = None) -> list[str]:
        """Validate configuration completeness and consistency.

        Args:
            chart: Chart of accounts the coding defaults must exist in;
                the chart check is skipped when omitted

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if self.extraction.min_line_length < 0:
            errors.append("extraction.min_line_length must be >= 0")
        if self.extraction.min_header_columns < 2:
            errors.append("extraction.min_header_columns must be >= 2")
        if not self.extraction.default_currency:
            errors.append("extraction.default_currency is required")

        if not 0.0 <= self.coding.alternative_confidence <= self.coding.primary_confidence <= 1.0:
            errors.append("coding confidences must satisfy 0 <= alternative <= primary <= 1")
        if self.coding.max_suggestions < 1:
            errors.append("coding.max_suggestions must be >= 1")
        if chart is not None:
            for key in ("default_income_code", "default_expense_code"):
                code = getattr(self.coding, key)
                if code not in chart:
                    errors.append(f"coding.{key} {code!r} is not in the chart of accounts")

        if self.trial_balance.tolerance < 0:
            errors.append("trial_balance.tolerance must be >= 0")

        if self.processing_timeout_seconds <= 0:
            errors.append("processing_timeout_seconds must be > 0")

        return errors


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - LEDGER_DB_PATH
    - LEDGER_CHART_PATH
    - LEDGER_PROCESSING_TIMEOUT (seconds)
    - LEDGER_DEFAULT_CURRENCY

    Raises:
        ConfigValidationError: If the resulting configuration is invalid
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    extraction_data = data.get("extraction", {})
    extraction = ExtractionConfig(
        min_line_length=extraction_data.get("min_line_length", 10),
        min_header_columns=extraction_data.get("min_header_columns", 3),
        default_currency=os.environ.get(
            "LEDGER_DEFAULT_CURRENCY", extraction_data.get("default_currency", "GBP")
        ),
        enable_date_pattern_strategy=extraction_data.get("enable_date_pattern_strategy", False),
    )

    coding_data = data.get("coding", {})
    coding = CodingConfig(
        primary_confidence=coding_data.get("primary_confidence", 0.9),
        alternative_confidence=coding_data.get("alternative_confidence", 0.3),
        fallback_confidence=coding_data.get("fallback_confidence", 0.4),
        max_suggestions=coding_data.get("max_suggestions", 5),
        default_income_code=str(coding_data.get("default_income_code", "4000")),
        default_expense_code=str(coding_data.get("default_expense_code", "6180")),
    )

    tb_data = data.get("trial_balance", {})
    trial_balance = TrialBalanceConfig(tolerance=tb_data.get("tolerance", 0.01))

    timeout = data.get("processing_timeout_seconds", 30.0)
    timeout_env = os.environ.get("LEDGER_PROCESSING_TIMEOUT", "")
    if timeout_env:
        try:
            timeout = float(timeout_env)
        except ValueError:
            raise ConfigValidationError(
                f"LEDGER_PROCESSING_TIMEOUT must be a number, got: {timeout_env!r}"
            ) from None

    chart_path = os.environ.get("LEDGER_CHART_PATH", data.get("chart_path"))

    config = Config(
        extraction=extraction,
        coding=coding,
        trial_balance=trial_balance,
        ledger_db_path=Path(os.environ.get("LEDGER_DB_PATH", data.get("ledger_db_path", "data/ledger.db"))),
        chart_path=Path(chart_path) if chart_path else None,
        processing_timeout_seconds=float(timeout),
    )

    errors = config.validate()
    if errors:
        raise ConfigValidationError("; ".join(errors))

    return config


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# Statement Ledger Configuration

# Statement text extraction
extraction:
  min_line_length: 10                # Shorter lines are never header candidates
  min_header_columns: 3              # Header row must split into this many columns
  default_currency: "GBP"            # Used when the statement shows no currency
  enable_date_pattern_strategy: false  # Legacy OUT/IN guessing strategy

# Auto-coding
coding:
  primary_confidence: 0.9            # Confidence of the rule-matched suggestion
  alternative_confidence: 0.3        # Confidence of same-type alternatives
  fallback_confidence: 0.4           # Recorded when a default code was used
  max_suggestions: 5
  default_income_code: "4000"        # Sales
  default_expense_code: "6180"       # Software (catch-all)

# Trial balance validation
trial_balance:
  tolerance: 0.01                    # Max |debits - credits| for a balanced ledger

# Ledger database path
ledger_db_path: "data/ledger.db"

# Optional chart of accounts YAML (built-in UK chart when unset)
chart_path: null

# Wall-clock limit for processing one statement (seconds)
processing_timeout_seconds: 30
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
