import logging
import os
from typing import Any, Dict, Optional

import yaml

DEFAULT_DATABASE_PATH = "./data/uigraph.db"

AGENT_DEFAULTS = {"max_turns": 40, "timeout_seconds": 900}
CODEGEN_DEFAULTS = {
    "max_attempts": 3,
    "max_turns": 20,
    "timeout_seconds": 900,
    "execution_timeout_seconds": 300,
    "work_dir": "./generated",
}


def find_config_file(args_config: Optional[str] = None, script_dir: Optional[str] = None) -> str:
    """Find the configuration file.

    An explicit path wins; otherwise config/config.yaml and config.yaml are
    searched in the working directory and then next to the launcher.
    """
    if args_config:
        if os.path.isfile(args_config):
            logging.info(f"Using specified config file: {args_config}")
            return args_config
        raise FileNotFoundError(f"Specified config file not found: {args_config}")

    current_dir = os.getcwd()
    script_dir = script_dir or current_dir
    default_paths = [
        os.path.join(current_dir, "config", "config.yaml"),
        os.path.join(script_dir, "config", "config.yaml"),
        os.path.join(current_dir, "config.yaml"),
        os.path.join(script_dir, "config.yaml"),
    ]
    for path in default_paths:
        if os.path.isfile(path):
            logging.info(f"Auto-discovered config file: {path}")
            return path

    raise FileNotFoundError(f"Config file does not exist, searched: {', '.join(default_paths)}")


def load_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def validate_and_build_llm_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and build the LLM configuration, environment variables take
    priority over the config file."""
    llm_cfg_raw = cfg.get("llm_config") or {}

    api_key = os.getenv("OPENAI_API_KEY") or llm_cfg_raw.get("api_key", "")
    base_url = os.getenv("OPENAI_BASE_URL") or llm_cfg_raw.get("base_url", "")
    model = llm_cfg_raw.get("model", "gpt-4o-mini")
    temperature = llm_cfg_raw.get("temperature", 0.0)

    if not api_key:
        raise ValueError(
            "LLM API Key not configured! Please set one of the following:\n"
            "   - Environment variable: OPENAI_API_KEY\n"
            "   - Config file: llm_config.api_key"
        )
    if not base_url:
        logging.warning("base_url not set, will use OpenAI default address")
        base_url = "https://api.openai.com/v1"

    api_key_masked = f"{api_key[:8]}...{api_key[-4:]}" if len(api_key) > 12 else "***"
    logging.info(f"LLM configuration: key {api_key_masked}, base URL {base_url}, model {model}")

    return {
        "api": "openai",
        "model": model,
        "api_key": api_key,
        "base_url": base_url,
        "temperature": temperature,
    }


def _section(cfg: Dict[str, Any], name: str, defaults: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(defaults)
    merged.update({k: v for k, v in (cfg.get(name) or {}).items() if v is not None})
    for key in ("max_turns", "max_attempts"):
        if key in merged and int(merged[key]) < 1:
            raise ValueError(f"{name}.{key} must be at least 1, got {merged[key]}")
    return merged


def agent_settings(cfg: Dict[str, Any]) -> Dict[str, Any]:
    return _section(cfg, "agent", AGENT_DEFAULTS)


def codegen_settings(cfg: Dict[str, Any]) -> Dict[str, Any]:
    return _section(cfg, "codegen", CODEGEN_DEFAULTS)


def database_path(cfg: Dict[str, Any]) -> str:
    return (cfg.get("database") or {}).get("path") or DEFAULT_DATABASE_PATH
