# Reads runtime configuration from the environment (and a local .env file).

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Everything the adapters need, passed explicitly instead of read as globals."""
    api_key: str
    timeout: float = 10.0
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        # Keys are read from environment variables for security.
        load_dotenv()
        api_key = (os.getenv("GEOAPIFY_API_KEY") or "").strip()
        if not api_key:
            raise ValueError(
                "FATAL ERROR: The GEOAPIFY_API_KEY environment variable is not set.")

        timeout_str = os.getenv("GEOAPIFY_TIMEOUT", "10")
        try:
            timeout = float(timeout_str)
        except ValueError:
            raise ValueError(
                f"FATAL ERROR: GEOAPIFY_TIMEOUT must be a number of seconds, got '{timeout_str}'.") from None

        return cls(
            api_key=api_key,
            timeout=timeout,
            log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        )
