"""Application configuration using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Target site
    base_url: str = "https://www.costco.com.tw"
    category_index_path: str = "/c/all-categories"

    # Database (empty string disables persistence)
    database_url: str = "sqlite:///data/products.db"

    # App Settings
    debug: bool = False
    log_level: str = "INFO"
    log_dir: str = ""
    app_host: str = "0.0.0.0"
    app_port: int = 8080

    # ==========================================================================
    # Crawl Settings
    # ==========================================================================
    min_delay_ms: int = 3000  # Minimum pacing delay after each navigation
    max_delay_ms: int = 5000  # Maximum pacing delay after each navigation
    max_pages: int = 100  # Pages per category before giving up
    element_wait_seconds: float = 10.0  # Wait for category links / product grid
    page_load_timeout_seconds: int = 30
    scroll_pause_seconds: float = 1.0  # Pause between lazy-load scroll probes
    max_scroll_probes: int = 10

    # Scheduler
    schedule_enabled: bool = True
    schedule_cron: str = "0 3 * * *"  # Daily at 3 AM

    # ==========================================================================
    # Browser Settings
    # ==========================================================================
    headless: bool = True
    window_size: str = "1920x1080"
    locale: str = "zh-TW"
    accept_language: str = "zh-TW,zh;q=0.9,en;q=0.8"
    user_agents: list[str] = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def category_index_url(self) -> str:
        """Absolute URL of the page listing every category."""
        return self.base_url.rstrip("/") + self.category_index_path

    @property
    def viewport(self) -> dict[str, int]:
        """Browser viewport parsed from window_size (e.g. '1920x1080')."""
        width, _, height = self.window_size.lower().partition("x")
        try:
            return {"width": int(width), "height": int(height)}
        except ValueError:
            return {"width": 1920, "height": 1080}


settings = Settings()
