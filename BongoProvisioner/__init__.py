"""
Logging for the Bongo provisioner.

Configuration lives in `logging.yaml` next to this file. `${VAR:-default}`
placeholders are filled from the environment, and the file handler is only
kept when BONGO_LOG_FILE names a log file.
"""
import logging.config
import os
import re
from pathlib import Path

import yaml

LOGGING_CONFIG_PATH = Path(__file__).with_name("logging.yaml")

_ENV_PLACEHOLDER = re.compile(r'\$\{([^}:]+):-([^}]*)\}')


def _expand_env(text: str) -> str:
  return _ENV_PLACEHOLDER.sub(lambda match: os.environ.get(match.group(1), match.group(2)), text)


def load_logging_config(path: Path = LOGGING_CONFIG_PATH, *, level: str | None = None) -> dict:
  config = yaml.safe_load(_expand_env(path.read_text(encoding="utf-8")))

  log_file = os.environ.get("BONGO_LOG_FILE")
  if log_file:
    os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
  else:
    config["handlers"].pop("file", None)
    root = config.setdefault("root", {})
    root["handlers"] = [name for name in root.get("handlers", []) if name != "file"]

  if level is not None:
    config["handlers"]["console"]["level"] = level
  return config


def setup_logging(level: str | None = None) -> None:
  """Configure logging; `level` overrides the console level (the CLI's --debug)."""
  if not LOGGING_CONFIG_PATH.exists():
    logging.basicConfig(level=level or logging.INFO)
    return
  logging.config.dictConfig(load_logging_config(level=level))


setup_logging()
