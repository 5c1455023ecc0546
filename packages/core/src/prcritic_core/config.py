import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "provider": "gemini",  # gemini | anthropic | openai
    "model": None,  # None = the provider's default model
    "bot_login": "github-actions[bot]",  # only reviews by this account count as prior automation reviews
    "per_page": 100,
    "max_concurrency": 4,
    "max_chars_per_file": 20000,
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "migrations/", "*.min.js")
    "review_draft_prs": False,
    "approve_reviews": False,  # when False an APPROVE suggestion is posted as COMMENT
    "post_on_parse_failure": True,  # False ends the run without posting when the AI reply is unreadable
    "project_context": "",
    "guidelines": None,  # path to a Markdown file appended to the system prompt
}

CONFIG_FILE = ".prcritic.yml"

_API_KEY_ENV = {
    "gemini_api_key": "GEMINI_API_KEY",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "openai_api_key": "OPENAI_API_KEY",
}


def load_config(config_path: str = CONFIG_FILE, cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prcritic.yml in the current directory
      3. CLI argument overrides
    Credentials always come from the environment.
    """
    config = {**DEFAULT_CONFIG, "exclude": list(DEFAULT_CONFIG["exclude"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"{config_path} must contain a mapping, got {type(file_config).__name__}.")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    for key, env_var in _API_KEY_ENV.items():
        config[key] = os.environ.get(env_var)

    return config


def api_key_env_var(provider: str) -> str:
    """Name of the environment variable holding the key for ``provider``."""
    try:
        return _API_KEY_ENV[f"{provider}_api_key"]
    except KeyError:
        raise ValueError(f"Unknown provider: {provider!r}. Choose 'gemini', 'anthropic' or 'openai'.")


def load_guidelines(config: dict) -> str:
    """
    Load optional team review guidelines.

    Returns an empty string when ``guidelines`` is not set, so the built-in
    prompt is used on its own.
    """
    custom_path = config.get("guidelines")
    if not custom_path:
        return ""
    p = Path(custom_path)
    if not p.exists():
        raise FileNotFoundError(f"Guidelines file not found: {custom_path}")
    return p.read_text()
