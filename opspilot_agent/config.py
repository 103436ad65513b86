"""OpsPilot configuration.

Loads from environment variables and .env file.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class OpsPilotSettings(BaseSettings):
    """Configuration for the OpsPilot agent service.

    All values can be set via environment variables or .env file.
    """

    # ----- Server -----
    host: str = Field(default="0.0.0.0", description="Bind host.")
    port: int = Field(default=3001, description="Bind port.")
    dev_mode: bool = Field(
        default=False,
        description="Dev mode: CORS wildcard, error details in responses.",
    )
    log_level: str = Field(default="INFO", description="Root log level.")

    # ----- Data Store (Supabase) -----
    supabase_url: str = Field(
        default="",
        description="Supabase project URL. In-memory store is used when empty.",
    )
    supabase_service_key: str = Field(
        default="",
        description="Supabase service role key.",
    )
    supabase_timeout_seconds: float = Field(default=10.0)
    seed_sample_data: bool = Field(
        default=False,
        description="Load sample vendors/shipments/invoices at startup.",
    )

    # ----- Narrative (Anthropic Claude) -----
    anthropic_api_key: str = Field(
        default="",
        description="Anthropic API key. Narrative summaries are skipped when empty.",
    )
    narrative_model: str = Field(default="claude-sonnet-4-20250514")
    narrative_max_tokens: int = Field(default=512)
    narrative_timeout_seconds: float = Field(default=30.0)

    # ----- Scheduler -----
    scheduler_enabled: bool = Field(
        default=True,
        description="Run all agents on a fixed interval.",
    )
    scheduler_interval_seconds: int = Field(
        default=900,
        description="Interval between scheduled runs. Default 15 minutes.",
    )

    # ----- Analysis thresholds -----
    vendor_top_score: float = Field(default=90.0)
    vendor_underperformer_score: float = Field(default=70.0)
    vendor_delivery_risk_rate: float = Field(default=80.0)
    invoice_amount_ceiling: float = Field(default=100_000.0)
    invoice_mismatch_tolerance: float = Field(default=0.01)
    invoice_batch_size: int = Field(default=50)
    esg_risk_threshold: float = Field(default=60.0)
    esg_governance_threshold: float = Field(default=50.0)
    procurement_batch_size: int = Field(default=100)

    model_config = {
        "env_prefix": "OPSPILOT_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> OpsPilotSettings:
    """Get cached settings singleton."""
    return OpsPilotSettings()
