from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # App
    APP_NAME: str = "Price Grid Rounds"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev
    LOG_LEVEL: str = "INFO"

    # Markets: comma separated preset names, see config/markets.py
    ENABLED_MARKETS: str = "BTC"
    # Start round 1 for every enabled market on application startup
    AUTOSTART_ROUNDS: bool = True

    # Round engine
    POLL_INTERVAL_SECONDS: float = 1.0
    NEXT_ROUND_DELAY_SECONDS: float = 5.0
    VISIBLE_ROWS: int = 14

    # Price fetcher
    PRICE_FAST_PATH_TIMEOUT_SECONDS: float = 3.0
    PRICE_SCAN_TIMEOUT_SECONDS: float = 5.0
    PRICE_MAX_CONSECUTIVE_FAILURES: int = 3

    # Settlement: 200 bps = 2% house commission
    COMMISSION_BPS: int = 200
    # Outbound on-chain settlement relay; empty = compute payouts only
    SETTLEMENT_RELAY_URL: str = ""
    SETTLEMENT_RELAY_TIMEOUT_SECONDS: float = 10.0

    @property
    def enabled_market_names(self) -> list[str]:
        return [name.strip().upper() for name in self.ENABLED_MARKETS.split(",") if name.strip()]


settings = Settings()
