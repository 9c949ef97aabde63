from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: Optional[str] = None

    # Log Level
    LOG_LEVEL: str = "INFO"

    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Logging-Intelligence-API"
    VERSION: str = "1.0.0"

    # CORS
    ALLOWED_ORIGINS: List[str] = []

    # Integrations service (text-generation collaborator)
    INTEGRATIONS_SERVICE_URL: str = "http://localhost:5007"
    INTEGRATIONS_SERVICE_ID: str = "logging"  # Sent as X-Service-Id

    # HTTP Settings
    HTTP_REQUEST_TIMEOUT_SECONDS: float = 30.0  # Default timeout for HTTP requests

    # External API Retry Configuration (Integrations service)
    # Uses tenacity library for retry logic with exponential backoff
    EXTERNAL_API_RETRY_ATTEMPTS: int = (
        3  # Total attempts (2 retries + 1 initial = 3 total)
    )
    EXTERNAL_API_RETRY_MIN_WAIT: float = (
        0.5  # Minimum wait time between retries (seconds)
    )
    EXTERNAL_API_RETRY_MAX_WAIT: float = (
        2.0  # Maximum wait time between retries (seconds)
    )
    EXTERNAL_API_RETRY_MULTIPLIER: float = 1.0  # Exponential backoff multiplier

    # Log Assistant LLM Settings (read once at startup)
    LLM_PROVIDER: str = "openai"
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.3
    LLM_MAX_TOKENS: int = 2000
    LOG_ASSISTANT_VERBOSE: bool = (
        False  # Emit debug telemetry for every assistant stage
    )

    # Log Assistant sample sizes (entries rendered into prompts)
    ASSISTANT_SUMMARIZE_SAMPLE_SIZE: int = 75
    ASSISTANT_ERROR_SAMPLE_SIZE: int = 25
    ASSISTANT_INVESTIGATE_SAMPLE_SIZE: int = 15

    # Log Assistant query caps (entries fetched from storage per request)
    ASSISTANT_SUMMARIZE_MAX_LIMIT: int = 500
    ASSISTANT_ANALYZE_MAX_LIMIT: int = 300
    ASSISTANT_INVESTIGATE_MAX_LIMIT: int = 300
    ASSISTANT_BROADER_LIMIT: int = 500  # Broader set used to find related logs
    ASSISTANT_LEGACY_ID_LIMIT: int = 1000  # Scan size when selecting by logIds

    # Real-time log streaming (SSE)
    BROADCAST_HEARTBEAT_INTERVAL_SECONDS: float = 30.0
    BROADCAST_QUEUE_MAX_SIZE: int = (
        1000  # Frames buffered per subscriber before it is dropped
    )

    # Logging Configuration
    LOGGING_FRAME_DEPTH: int = (
        6  # Frame depth for finding logging call origin in stack trace
    )

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    # --------- Properties ---------
    @property
    def is_local(self) -> bool:
        """
        Check if running in local development environment.

        Supported values:
        - "local", "local_dev" or "development" → True
        - "dev", "staging", "prod", or anything else → False (deployed)
        """
        if not self.ENVIRONMENT:
            return False
        env = self.ENVIRONMENT.lower()
        return env in ["local", "local_dev", "development"]

    @property
    def is_verbose(self) -> bool:
        """Verbose assistant telemetry is on when requested or when running locally."""
        return self.LOG_ASSISTANT_VERBOSE or self.is_local


settings = Settings()
