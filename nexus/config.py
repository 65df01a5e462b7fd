# nexus/config.py
import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    max_months: int = 1200
    currency_symbol: str = "$"
    cors_origins: tuple = ("*",)

    @property
    def cors_origin_list(self) -> List[str]:
        return list(self.cors_origins)


def get_settings() -> Settings:
    """Read settings from the environment (a .env file is loaded at import)."""
    origins = os.getenv("NEXUS_CORS_ORIGINS", "*")
    return Settings(
        log_level=os.getenv("NEXUS_LOG_LEVEL", "INFO").upper(),
        max_months=int(os.getenv("NEXUS_MAX_MONTHS", "1200")),
        currency_symbol=os.getenv("NEXUS_CURRENCY_SYMBOL", "$"),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
    )
