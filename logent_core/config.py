"""
Logent Unified Configuration System
===================================

Loads and manages configuration from logent.yaml with environment variable
overrides.

Author: Logent contributors | 2026-10-16
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

MODEL_CHOICES = ("gpt-3.5-turbo", "gpt-4-turbo", "gpt-4-vision-preview", "custom-model")
CUSTOM_MODEL = "custom-model"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_SYSTEM_MESSAGE = (
    "You're a helpful & smart assistant. Please provide concise & correct answers."
)

_TRUE_VALUES = ("true", "1", "yes")


# =============================================================================
# Configuration Data Classes
# =============================================================================

@dataclass
class LLMConfig:
    """Completion service configuration."""
    base_url: Optional[str] = "https://api.openai.com/v1"
    api_key: Optional[str] = None  # Prefer LOGENT_API_KEY / OPENAI_API_KEY
    model: str = DEFAULT_MODEL
    custom_model: Optional[str] = None  # Used when model == "custom-model"
    timeout: int = 120


@dataclass
class ChatConfig:
    """Conversation behavior."""
    stream: bool = False
    max_stream_elapsed: float = 60.0  # Seconds
    system_message: str = DEFAULT_SYSTEM_MESSAGE
    auto_new_block: bool = True
    debug_prompts: bool = False


@dataclass
class LinksConfig:
    """Paper link resolution."""
    timeout: int = 30
    user_agent: str = "Mozilla/5.0 (compatible; logent)"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_dir: str = ".logent/logs"
    events_log: str = "events.jsonl"


@dataclass
class LogentConfig:
    """Root configuration container."""
    llm: LLMConfig = field(default_factory=LLMConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    links: LinksConfig = field(default_factory=LinksConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    user_name: Optional[str] = None


# =============================================================================
# Configuration Loader
# =============================================================================

def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find logent.yaml by searching upward from start_path.

    Search order:
    1. start_path / logent.yaml
    2. start_path / .logent / logent.yaml
    3. Parent directories (recursive)
    4. ~/.config/logent/logent.yaml

    Args:
        start_path: Starting directory (defaults to cwd)

    Returns:
        Path to config file or None if not found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = Path(start_path).resolve()
    for _ in range(10):  # Max 10 levels up
        for candidate in (current / "logent.yaml", current / ".logent" / "logent.yaml"):
            if candidate.exists():
                return candidate

        parent = current.parent
        if parent == current:
            break
        current = parent

    user_config = Path.home() / ".config" / "logent" / "logent.yaml"
    if user_config.exists():
        return user_config

    return None


def load_config(config_path: Optional[Path] = None) -> LogentConfig:
    """
    Load configuration from YAML file with environment variable overrides.

    Environment variables override config file values:
    - LOGENT_BASE_URL -> llm.base_url
    - LOGENT_API_KEY -> llm.api_key (falls back to OPENAI_API_KEY)
    - LOGENT_MODEL -> llm.model
    - LOGENT_CUSTOM_MODEL -> llm.custom_model
    - LOGENT_STREAM -> chat.stream
    - LOGENT_MAX_STREAM_ELAPSED -> chat.max_stream_elapsed
    - LOGENT_DEBUG_PROMPTS -> chat.debug_prompts
    - LOGENT_LOG_LEVEL -> logging.level

    Args:
        config_path: Path to config file (auto-detected if None)

    Returns:
        LogentConfig instance
    """
    config = LogentConfig()

    if config_path is None:
        config_path = find_config_file()

    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            config = _parse_config_dict(data)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config: {e}, using defaults")
    else:
        logger.info("No config file found, using defaults")

    config = _apply_env_overrides(config)
    _validate_config(config)
    return config


def _parse_config_dict(data: Dict[str, Any]) -> LogentConfig:
    """Parse configuration dictionary into LogentConfig."""
    config = LogentConfig()

    if "llm" in data:
        llm = data["llm"] or {}
        config.llm = LLMConfig(
            base_url=llm.get("base_url", config.llm.base_url),
            api_key=llm.get("api_key"),
            model=llm.get("model", config.llm.model),
            custom_model=llm.get("custom_model"),
            timeout=llm.get("timeout", config.llm.timeout),
        )

    if "chat" in data:
        chat = data["chat"] or {}
        config.chat = ChatConfig(
            stream=chat.get("stream", config.chat.stream),
            max_stream_elapsed=chat.get("max_stream_elapsed", config.chat.max_stream_elapsed),
            system_message=chat.get("system_message", config.chat.system_message),
            auto_new_block=chat.get("auto_new_block", config.chat.auto_new_block),
            debug_prompts=chat.get("debug_prompts", config.chat.debug_prompts),
        )

    if "links" in data:
        links = data["links"] or {}
        config.links = LinksConfig(
            timeout=links.get("timeout", config.links.timeout),
            user_agent=links.get("user_agent", config.links.user_agent),
        )

    if "logging" in data:
        log = data["logging"] or {}
        config.logging = LoggingConfig(
            level=log.get("level", config.logging.level),
            log_dir=log.get("log_dir", config.logging.log_dir),
            events_log=log.get("events_log", config.logging.events_log),
        )

    config.user_name = data.get("user_name", config.user_name)
    return config


def _apply_env_overrides(config: LogentConfig) -> LogentConfig:
    """Apply environment variable overrides to config."""

    if os.environ.get("LOGENT_BASE_URL"):
        config.llm.base_url = os.environ["LOGENT_BASE_URL"]

    if os.environ.get("LOGENT_API_KEY"):
        config.llm.api_key = os.environ["LOGENT_API_KEY"]
    elif not config.llm.api_key and os.environ.get("OPENAI_API_KEY"):
        config.llm.api_key = os.environ["OPENAI_API_KEY"]

    if os.environ.get("LOGENT_MODEL"):
        config.llm.model = os.environ["LOGENT_MODEL"]

    if os.environ.get("LOGENT_CUSTOM_MODEL"):
        config.llm.custom_model = os.environ["LOGENT_CUSTOM_MODEL"]

    if os.environ.get("LOGENT_STREAM"):
        config.chat.stream = os.environ["LOGENT_STREAM"].lower() in _TRUE_VALUES

    if os.environ.get("LOGENT_MAX_STREAM_ELAPSED"):
        try:
            config.chat.max_stream_elapsed = float(os.environ["LOGENT_MAX_STREAM_ELAPSED"])
        except ValueError:
            logger.warning(
                f"Ignoring non-numeric LOGENT_MAX_STREAM_ELAPSED="
                f"{os.environ['LOGENT_MAX_STREAM_ELAPSED']!r}"
            )

    if os.environ.get("LOGENT_DEBUG_PROMPTS"):
        config.chat.debug_prompts = os.environ["LOGENT_DEBUG_PROMPTS"].lower() in _TRUE_VALUES

    if os.environ.get("LOGENT_LOG_LEVEL"):
        config.logging.level = os.environ["LOGENT_LOG_LEVEL"]

    return config


def _validate_config(config: LogentConfig) -> None:
    """Validate configuration and log warnings."""

    if config.llm.model not in MODEL_CHOICES:
        # Any other name is taken as a custom model
        logger.warning(
            f"Model '{config.llm.model}' is not one of {', '.join(MODEL_CHOICES)}; "
            f"treating it as a custom model"
        )
        config.llm.custom_model = config.llm.model
        config.llm.model = CUSTOM_MODEL

    if config.chat.max_stream_elapsed <= 0:
        logger.warning(
            f"max_stream_elapsed must be positive (got {config.chat.max_stream_elapsed}), "
            f"defaulting to 60"
        )
        config.chat.max_stream_elapsed = 60.0

    if config.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        logger.warning(f"Unknown log level '{config.logging.level}', defaulting to INFO")
        config.logging.level = "INFO"


def save_config(config: LogentConfig, path: Path) -> None:
    """
    Save configuration to YAML file.

    The API key is never written; set it through the environment.
    """
    data = {
        "user_name": config.user_name,
        "llm": {
            "base_url": config.llm.base_url,
            "model": config.llm.model,
            "custom_model": config.llm.custom_model,
            "timeout": config.llm.timeout,
        },
        "chat": {
            "stream": config.chat.stream,
            "max_stream_elapsed": config.chat.max_stream_elapsed,
            "system_message": config.chat.system_message,
            "auto_new_block": config.chat.auto_new_block,
            "debug_prompts": config.chat.debug_prompts,
        },
        "links": {
            "timeout": config.links.timeout,
            "user_agent": config.links.user_agent,
        },
        "logging": {
            "level": config.logging.level,
            "log_dir": config.logging.log_dir,
            "events_log": config.logging.events_log,
        },
    }

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Configuration saved to: {path}")


# =============================================================================
# Global Config Instance
# =============================================================================

_global_config: Optional[LogentConfig] = None


def get_config() -> LogentConfig:
    """Get the global configuration instance (lazy-loaded)."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reload_config(config_path: Optional[Path] = None) -> LogentConfig:
    """Reload configuration from file."""
    global _global_config
    _global_config = load_config(config_path)
    return _global_config
