import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        session_secret: str,
        session_max_age_hours: int,
        fallback_account_id: str,
        savings_category_name: str,
        savings_category_aliases: tuple[str, ...],
        test_user_id: str,
        log_level: str,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.session_secret = session_secret
        self.session_max_age_hours = session_max_age_hours
        self.fallback_account_id = fallback_account_id
        self.savings_category_name = savings_category_name
        self.savings_category_aliases = savings_category_aliases
        self.test_user_id = test_user_id
        self.log_level = log_level


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("HOUSEHOLD_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _split_aliases(raw: str) -> tuple[str, ...]:
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    database_url = os.getenv("HOUSEHOLD_DATABASE_URL")
    if not database_url:
        default_db = _ensure_data_dir() / "household.db"
        database_url = f"sqlite:///{default_db}"
    timezone = os.getenv("HOUSEHOLD_TIMEZONE", "Europe/Berlin")
    session_secret = os.getenv(
        "HOUSEHOLD_SESSION_SECRET",
        "5d0c1f7e8a2b4f66b1e3c9a04d7f2e18a6c3b95f0e4d7a21c8b6f3e9d0a5c712",
    )
    session_max_age_hours = int(os.getenv("HOUSEHOLD_SESSION_MAX_AGE_HOURS", "720"))
    fallback_account_id = os.getenv("HOUSEHOLD_FALLBACK_ACCOUNT_ID", "acc_demo")
    savings_category_name = os.getenv("HOUSEHOLD_SAVINGS_CATEGORY", "Savings")
    savings_category_aliases = _split_aliases(
        os.getenv("HOUSEHOLD_SAVINGS_ALIASES", "savings,sparen")
    )
    test_user_id = os.getenv("HOUSEHOLD_TEST_USER_ID", "")
    log_level = os.getenv("HOUSEHOLD_LOG_LEVEL", "INFO").upper()
    return Settings(
        database_url=database_url,
        timezone=timezone,
        session_secret=session_secret,
        session_max_age_hours=session_max_age_hours,
        fallback_account_id=fallback_account_id,
        savings_category_name=savings_category_name,
        savings_category_aliases=savings_category_aliases,
        test_user_id=test_user_id,
        log_level=log_level,
    )
