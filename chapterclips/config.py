import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

MODEL_DEFAULTS = {
    "openai": "gpt-3.5-turbo",
    "gemini": "gemini-3-flash-preview",
    "ollama": "llama3",
}

CONFIG_SEARCH_PATHS = [
    Path("config.toml"),
    Path.home() / ".config" / "chapter-clips" / "config.toml",
]

ENV_SEARCH_PATHS = [
    Path(".env"),
    Path(".env.local"),
]


@dataclass
class Config:
    provider: str | None = "openai"
    model: str | None = None
    input_bucket: str | None = None
    output_bucket: str | None = None
    region: str = "us-east-2"
    url_ttl: int = 3600
    scratch_dir: str = "./uploads"
    square_size: int = 1080
    max_chapter_ms: int = 360_000
    confirm_interval: float = 5.0
    confirm_timeout: float = 300.0
    transcription_poll_interval: float = 5.0
    transcription_timeout: float = 3600.0

    def resolved_model(self) -> str | None:
        return self.model or MODEL_DEFAULTS.get(self.provider or "")


def load_dotenv() -> None:
    """Fill the process environment from .env, then .env.local.

    These files usually carry ASSEMBLY_KEY, AWS_ACCESS / AWS_SECRET_ACCESS
    and the AWS_BUCKET_NAME / AWS_OUTPUT_BUCKET_NAME fallbacks. A later file
    wins over an earlier one, but a variable already set in the process is
    left alone.
    """
    merged: dict[str, str] = {}
    for env_path in ENV_SEARCH_PATHS:
        if env_path.exists():
            merged.update(
                (key, value) for key, value in dotenv_values(env_path).items() if value is not None
            )

    for key, value in merged.items():
        os.environ.setdefault(key, value)


def load_config(path: str | None = None) -> Config:
    """Load config from TOML file.

    Search order: explicit path > ./config.toml > ~/.config/chapter-clips/config.toml
    Missing config file is not an error (defaults are used). Bucket names fall
    back to AWS_BUCKET_NAME / AWS_OUTPUT_BUCKET_NAME.
    """
    load_dotenv()

    config_path = None
    if path:
        config_path = Path(path)
        if not config_path.exists():
            print(f"Config file not found: {path}")
            sys.exit(1)
    else:
        for candidate in CONFIG_SEARCH_PATHS:
            if candidate.exists():
                config_path = candidate
                break

    data: dict = {}
    if config_path is not None:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)

    ai = data.get("ai", {})
    storage = data.get("storage", {})
    transcription = data.get("transcription", {})
    output = data.get("output", {})

    return Config(
        provider=ai.get("provider", Config.provider),
        model=ai.get("model"),
        input_bucket=storage.get("input_bucket", os.environ.get("AWS_BUCKET_NAME")),
        output_bucket=storage.get("output_bucket", os.environ.get("AWS_OUTPUT_BUCKET_NAME")),
        region=storage.get("region", Config.region),
        url_ttl=int(storage.get("url_ttl", Config.url_ttl)),
        scratch_dir=output.get("scratch_dir", Config.scratch_dir),
        square_size=int(output.get("square_size", Config.square_size)),
        max_chapter_ms=int(output.get("max_chapter_ms", Config.max_chapter_ms)),
        confirm_interval=float(output.get("confirm_interval", Config.confirm_interval)),
        confirm_timeout=float(output.get("confirm_timeout", Config.confirm_timeout)),
        transcription_poll_interval=float(
            transcription.get("poll_interval", Config.transcription_poll_interval)
        ),
        transcription_timeout=float(
            transcription.get("timeout", Config.transcription_timeout)
        ),
    )
