"""Configuration for flowtext, read once at import time.

Values come from ``flowtext/config.yaml``. A few keys can be overridden from
the environment (or a ``.env`` file at the project root) so that the runtime
location and verbosity can change without editing the YAML.
"""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")

CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

# config key -> environment variable
ENV_OVERRIDES = {
    "runtime_dir": "FLOWTEXT_RUNTIME_DIR",
    "log_level": "FLOWTEXT_LOG_LEVEL",
    "pip_index_url": "FLOWTEXT_PIP_INDEX_URL",
}


def _load(path: Path) -> dict:
    data = yaml.safe_load(path.read_text()) or {}
    for key, env_var in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            data[key] = value
    return data


_config = _load(CONFIG_PATH)


def get_config() -> dict:
    """Return the loaded config dictionary."""
    return _config
