"""Unit tests for environment-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from pairsync.chain import ChainConfigError, LcdConfig, create_signer
from pairsync.registry import ReconcileConfig
from pairsync.registry.config import (
    DEFAULT_DESTINATION_REGISTRY,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SOURCE_REGISTRY,
)
from tests.helpers.signers import RecordingSigner

_RECONCILE_VARS = (
    "PAIRSYNC_SOURCE_REGISTRY",
    "PAIRSYNC_DESTINATION_REGISTRY",
    "PAIRSYNC_PAGE_SIZE",
    "PAIRSYNC_DRY_RUN",
    "PAIRSYNC_CHECK_REVERSED",
    "PAIRSYNC_SENDER",
    "PAIRSYNC_OUTPUT_DIR",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every pairsync variable so defaults apply."""
    for name in (
        *_RECONCILE_VARS,
        "PAIRSYNC_LCD_URL",
        "PAIRSYNC_CHAIN_ID",
        "PAIRSYNC_TIMEOUT_S",
        "PAIRSYNC_SIGNER",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLcdConfig:
    """Tests for LcdConfig."""

    def test_trailing_slash_is_removed(self) -> None:
        """Endpoint paths are joined onto a slash-free base URL."""
        assert LcdConfig(lcd_url="https://lcd.test//").lcd_url == "https://lcd.test"

    def test_url_is_required(self, clean_env: pytest.MonkeyPatch) -> None:
        """An unset gateway URL names the missing variable."""
        with pytest.raises(ChainConfigError, match="PAIRSYNC_LCD_URL"):
            LcdConfig.from_env()

    def test_from_env_reads_all_settings(self, clean_env: pytest.MonkeyPatch) -> None:
        """Chain id and timeout are picked up alongside the URL."""
        clean_env.setenv("PAIRSYNC_LCD_URL", "https://lcd.test/")
        clean_env.setenv("PAIRSYNC_CHAIN_ID", "columbus-5")
        clean_env.setenv("PAIRSYNC_TIMEOUT_S", "7.5")

        config = LcdConfig.from_env()

        assert config == LcdConfig(
            lcd_url="https://lcd.test", chain_id="columbus-5", timeout_s=7.5
        )

    @pytest.mark.parametrize("timeout", ["soon", "0", "-1"])
    def test_invalid_timeout_is_rejected(
        self, clean_env: pytest.MonkeyPatch, timeout: str
    ) -> None:
        """Timeouts must be positive numbers."""
        clean_env.setenv("PAIRSYNC_LCD_URL", "https://lcd.test")
        clean_env.setenv("PAIRSYNC_TIMEOUT_S", timeout)

        with pytest.raises(ChainConfigError, match="PAIRSYNC_TIMEOUT_S"):
            LcdConfig.from_env()


class TestReconcileConfig:
    """Tests for ReconcileConfig."""

    def test_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        """Without variables the run is a dry run against mainnet factories."""
        config = ReconcileConfig.from_env()

        assert config.source_registry == DEFAULT_SOURCE_REGISTRY
        assert config.destination_registry == DEFAULT_DESTINATION_REGISTRY
        assert config.page_size == DEFAULT_PAGE_SIZE == 30
        assert config.dry_run is True
        assert config.check_reversed is False
        assert config.sender is None
        assert config.output_dir == Path()
        assert config.source_snapshot == "source_pairs.json"
        assert config.missing_snapshot == "missing_pairs.json"

    def test_from_env_overrides(self, clean_env: pytest.MonkeyPatch) -> None:
        """Every documented variable is honoured."""
        clean_env.setenv("PAIRSYNC_SOURCE_REGISTRY", "terra1a")
        clean_env.setenv("PAIRSYNC_DESTINATION_REGISTRY", "terra1b")
        clean_env.setenv("PAIRSYNC_PAGE_SIZE", "10")
        clean_env.setenv("PAIRSYNC_DRY_RUN", "false")
        clean_env.setenv("PAIRSYNC_CHECK_REVERSED", "YES")
        clean_env.setenv("PAIRSYNC_SENDER", "terra1me")
        clean_env.setenv("PAIRSYNC_OUTPUT_DIR", "/tmp/pairs")

        config = ReconcileConfig.from_env()

        assert config.source_registry == "terra1a"
        assert config.destination_registry == "terra1b"
        assert config.page_size == 10
        assert config.dry_run is False
        assert config.check_reversed is True
        assert config.sender == "terra1me"
        assert config.output_dir == Path("/tmp/pairs")

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("PAIRSYNC_PAGE_SIZE", "zero"),
            ("PAIRSYNC_PAGE_SIZE", "0"),
            ("PAIRSYNC_DRY_RUN", "maybe"),
            ("PAIRSYNC_CHECK_REVERSED", "2"),
        ],
    )
    def test_invalid_values_are_rejected(
        self, clean_env: pytest.MonkeyPatch, name: str, value: str
    ) -> None:
        """Unparseable numbers and flags raise ChainConfigError."""
        clean_env.setenv(name, value)

        with pytest.raises(ChainConfigError, match=name):
            ReconcileConfig.from_env()


class TestCreateSigner:
    """Tests for the PAIRSYNC_SIGNER factory loader."""

    def test_unset_returns_none(self, clean_env: pytest.MonkeyPatch) -> None:
        """No signer is configured by default."""
        assert create_signer() is None

    def test_factory_is_called(self, clean_env: pytest.MonkeyPatch) -> None:
        """The named factory builds the signer."""
        clean_env.setenv("PAIRSYNC_SIGNER", "tests.helpers.signers:build_signer")

        assert isinstance(create_signer(), RecordingSigner)

    @pytest.mark.parametrize(
        "reference",
        [
            "tests.helpers.signers",
            "tests.helpers.signers:",
            "tests.helpers.no_such_module:build_signer",
            "tests.helpers.signers:missing_factory",
        ],
    )
    def test_bad_reference_is_rejected(
        self, clean_env: pytest.MonkeyPatch, reference: str
    ) -> None:
        """Malformed or unresolvable references are configuration errors."""
        clean_env.setenv("PAIRSYNC_SIGNER", reference)

        with pytest.raises(ChainConfigError, match="PAIRSYNC_SIGNER"):
            create_signer()
