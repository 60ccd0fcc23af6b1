from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Provider selection
    ai_provider: str = "gemini"  # openai | gemini | groq | openrouter | ollama
    openai_api_key: str = ""
    gemini_api_key: str = ""
    groq_api_key: str = ""
    openrouter_api_key: str = ""
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "llama2"
    provider_timeout_seconds: float = 60.0

    # Rate limiter (one per running provider)
    rate_limit_min_interval_seconds: float = 2.0
    rate_limit_max_calls_per_minute: int = 10
    rate_limit_max_wait_seconds: float = 5.0  # longest a run waits for a slot

    # In-flight registry
    in_flight_timeout_seconds: float = 300.0

    # Analysis runs
    max_prompts_per_run: int = 6
    inter_call_delay_seconds: float = 0.5
    compare_prompt_delay_seconds: float = 0.5
    compare_max_calls_per_minute: int = 30  # per comparison provider; no min interval
    confidence_history_size: int = 7

    # App
    app_env: str = "development"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called by runners before building services."""
    errors: list[str] = []

    if settings.rate_limit_max_calls_per_minute < 1:
        errors.append("RATE_LIMIT_MAX_CALLS_PER_MINUTE must be at least 1")

    if settings.in_flight_timeout_seconds <= 0:
        errors.append("IN_FLIGHT_TIMEOUT_SECONDS must be positive")

    if settings.app_env == "production":
        if not any(
            (
                settings.openai_api_key,
                settings.gemini_api_key,
                settings.groq_api_key,
                settings.openrouter_api_key,
            )
        ) and settings.ai_provider != "ollama":
            errors.append("At least one provider API key must be set in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
