"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# 25 MiB, the provider's upload ceiling for speech-to-text
MAX_AUDIO_BYTES = 25 * 1024 * 1024


class Settings(BaseSettings):
    """Audio Notes settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        llm_provider: Which LLM backend analyzes transcripts ("groq", "claude", "ollama").
        stt_provider: Speech-to-text backend ("groq").
        groq_api_key: Provider secret shared by transcription and the default LLM.
        note_storage: Key-value slot backend for saved notes ("sqlite" or "file").
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Providers ---
    llm_provider: str = "groq"
    stt_provider: str = "groq"

    # Groq (OpenAI-compatible API) settings
    groq_api_key: str = ""  # Required for transcription and llm_provider="groq"
    groq_base_url: str = "https://api.groq.com/openai/v1"
    groq_chat_model: str = "llama-3.1-8b-instant"
    groq_transcription_model: str = "whisper-large-v3-turbo"

    # Claude (Anthropic API) settings
    claude_api_key: str = ""  # Required when llm_provider="claude"
    claude_model: str = "claude-sonnet-4-20250514"

    # Ollama (local LLM) settings
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"

    # --- Transcription ---
    transcription_language: str = "en"  # ISO 639-1 code sent with every upload
    max_audio_bytes: int = MAX_AUDIO_BYTES
    request_timeout: float = 60.0  # Transport timeout for provider calls (seconds)

    # --- Generation ---
    analysis_temperature: float = 0.7
    analysis_max_tokens: int = 1000
    title_max_tokens: int = 50

    # --- Capture ---
    capture_sample_rate: int = 16000  # 16kHz is what Whisper models expect
    capture_channels: int = 1

    # --- Storage ---
    # "sqlite" keeps slots in a SQLAlchemy table; "file" keeps one JSON file per slot
    note_storage: str = "sqlite"
    database_url: str = "sqlite+aiosqlite:///data/audio_notes.db"
    slots_dir: str = "data/slots"
    notes_storage_key: str = "audioNotes"

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    cors_origins: list[str] = [
        "http://localhost:8501",  # Streamlit
        "http://localhost:3000",  # Dev frontend
    ]
    api_base_url: str = "http://localhost:8000"  # Where the UI finds the backend
    log_level: str = "INFO"  # Python logging level


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
