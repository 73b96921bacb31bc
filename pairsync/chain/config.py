"""Configuration for the LCD contract client."""

from __future__ import annotations

import dataclasses
import os

from pairsync.chain.errors import ChainConfigError

_DEFAULT_TIMEOUT_S = 20.0
_DEFAULT_USER_AGENT = "pairsync/0.1"


def _parse_timeout_from_env() -> float:
    raw = os.environ.get("PAIRSYNC_TIMEOUT_S")
    if raw is None or not raw.strip():
        return _DEFAULT_TIMEOUT_S
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ChainConfigError.invalid_setting("PAIRSYNC_TIMEOUT_S", raw) from exc
    if timeout <= 0:
        raise ChainConfigError.invalid_setting("PAIRSYNC_TIMEOUT_S", raw)
    return timeout


@dataclasses.dataclass(frozen=True, slots=True)
class LcdConfig:
    """Connection settings for a Cosmos LCD (REST) gateway.

    Attributes
    ----------
    lcd_url
        Base URL of the gateway, without a trailing slash.
    chain_id
        Chain identifier, used for logging and handed to signers.
    timeout_s
        Per-request timeout applied by the HTTP client.
    user_agent
        Value of the ``User-Agent`` header.

    """

    lcd_url: str
    chain_id: str = ""
    timeout_s: float = _DEFAULT_TIMEOUT_S
    user_agent: str = _DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        """Strip a trailing slash so endpoint paths join cleanly."""
        object.__setattr__(self, "lcd_url", self.lcd_url.rstrip("/"))

    @classmethod
    def from_env(cls) -> LcdConfig:
        """Build configuration from ``PAIRSYNC_*`` environment variables.

        Reads ``PAIRSYNC_LCD_URL`` (required), ``PAIRSYNC_CHAIN_ID`` and
        ``PAIRSYNC_TIMEOUT_S``.

        Raises
        ------
        ChainConfigError
            If the gateway URL is unset or the timeout is not a positive
            number.

        """
        lcd_url = os.environ.get("PAIRSYNC_LCD_URL", "").strip()
        if not lcd_url:
            raise ChainConfigError.missing_setting("PAIRSYNC_LCD_URL")
        return cls(
            lcd_url=lcd_url,
            chain_id=os.environ.get("PAIRSYNC_CHAIN_ID", "").strip(),
            timeout_s=_parse_timeout_from_env(),
        )
