"""Configuration management for the vclusterctl application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

class Config:
    """Application configuration with sensible defaults."""

    # External tool
    VCLUSTER_BINARY: str = os.getenv("VCLUSTER_BINARY", "vcluster")

    # State store for records managed by the local runtime
    STATE_PATH: str = os.getenv("VCLUSTERCTL_STATE_FILE", ".vclusterctl/state.json")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # API server
    API_KEY: str = os.getenv("VCLUSTERCTL_API_KEY", "")
    API_HOST: str = os.getenv("VCLUSTERCTL_API_HOST", "127.0.0.1")
    API_PORT: int = int(os.getenv("VCLUSTERCTL_API_PORT", "8000"))

    # Security
    REDACT_KEYS: tuple = ("password", "token", "client_key", "secret")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        required = {
            "VCLUSTER_BINARY": cls.VCLUSTER_BINARY,
            "VCLUSTERCTL_STATE_FILE": cls.STATE_PATH,
        }
        missing = [k for k, v in required.items() if not v]
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

    @classmethod
    def validate_api(cls) -> None:
        """Validate configuration needed to serve the HTTP API."""
        cls.validate()
        if not cls.API_KEY:
            raise ValueError("Missing required configuration: VCLUSTERCTL_API_KEY")

# Don't validate on import to allow for dynamic configuration
# Call Config.validate() explicitly when needed
