"""
Officesim Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # LLM Provider Configuration
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "openai")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4o-mini")

    # API Keys
    ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    GOOGLE_API_KEY: str | None = os.getenv("GOOGLE_API_KEY")

    # Simulation Configuration
    DEFAULT_TICK_COUNT: int = int(os.getenv("DEFAULT_TICK_COUNT", "50"))
    TICK_DURATION_SECONDS: float = float(os.getenv("TICK_DURATION_SECONDS", "1.0"))
    OFFICE_TYPE: str = os.getenv("OFFICE_TYPE", "default")

    # Character behaviour
    # Wall-clock seconds between two memory hand-offs for the same character
    MEMORY_CONSOLIDATION_INTERVAL_SECONDS: float = float(
        os.getenv("MEMORY_CONSOLIDATION_INTERVAL_SECONDS", "30")
    )
    # Minimum gap between two oracle prompts for the same character
    PROMPT_COOLDOWN_SECONDS: float = float(os.getenv("PROMPT_COOLDOWN_SECONDS", "10"))
    # Normalized distance under which another character counts as "nearby"
    PROXIMITY_RADIUS: float = float(os.getenv("PROXIMITY_RADIUS", "0.2"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Project Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if required values are missing."""
        if cls.LLM_PROVIDER == "anthropic" and not cls.ANTHROPIC_API_KEY:
            raise ValueError(
                "ANTHROPIC_API_KEY is required when using the 'anthropic' provider"
            )

        if cls.LLM_PROVIDER == "openai" and not cls.OPENAI_API_KEY:
            raise ValueError(
                "OPENAI_API_KEY is required when using the 'openai' provider"
            )

        if cls.LLM_PROVIDER == "google" and not cls.GOOGLE_API_KEY:
            raise ValueError(
                "GOOGLE_API_KEY is required when using the 'google' provider"
            )

        if cls.TICK_DURATION_SECONDS <= 0:
            raise ValueError("TICK_DURATION_SECONDS must be positive")

        if cls.PROXIMITY_RADIUS <= 0:
            raise ValueError("PROXIMITY_RADIUS must be positive")

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Officesim Configuration:",
            f"  LLM Provider: {cls.LLM_PROVIDER}",
            f"  LLM Model: {cls.LLM_MODEL}",
            f"  Office Type: {cls.OFFICE_TYPE}",
            f"  Default Ticks: {cls.DEFAULT_TICK_COUNT}",
            f"  Tick Duration: {cls.TICK_DURATION_SECONDS}s",
            f"  Memory Consolidation: every {cls.MEMORY_CONSOLIDATION_INTERVAL_SECONDS}s",
            f"  Prompt Cooldown: {cls.PROMPT_COOLDOWN_SECONDS}s",
        ]
        return "\n".join(lines)
