"""Backend connection settings."""

import os
from typing import Optional

from pydantic import BaseModel, Field

from .models import PICKUP_ONLY_ADDRESS


class BackendSettings(BaseModel):
    """Connection settings for the hosted backend."""

    supabase_url: str = Field(description="Project URL, e.g. https://xyz.supabase.co")
    supabase_key: str = Field(description="Anonymous API key")
    timeout: float = Field(30.0, gt=0, description="HTTP timeout in seconds")
    pickup_address: str = Field(PICKUP_ONLY_ADDRESS, description="Fixed pickup address shown at checkout")

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "BackendSettings":
        """
        Load settings from environment variables.

        Reads SUPABASE_URL and SUPABASE_KEY (required), BAKERY_HTTP_TIMEOUT and
        BAKERY_PICKUP_ADDRESS (optional).

        Raises:
            ValueError: If a required variable is not set
        """
        env = os.environ if environ is None else environ

        url = env.get("SUPABASE_URL")
        key = env.get("SUPABASE_KEY")
        missing = [name for name, value in (("SUPABASE_URL", url), ("SUPABASE_KEY", key)) if not value]
        if missing:
            raise ValueError(f"Missing environment variables: {', '.join(missing)}")

        settings = {"supabase_url": url, "supabase_key": key}
        if env.get("BAKERY_HTTP_TIMEOUT"):
            settings["timeout"] = float(env["BAKERY_HTTP_TIMEOUT"])
        if env.get("BAKERY_PICKUP_ADDRESS"):
            settings["pickup_address"] = env["BAKERY_PICKUP_ADDRESS"]
        return cls(**settings)
