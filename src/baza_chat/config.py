"""
Client configuration — ~/.baza/config.json, with BAZA_BASE_URL taking precedence.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError

from baza_chat.connectivity import DEFAULT_PROBE_INTERVAL_S
from baza_chat.i18n import DEFAULT_LANGUAGE
from baza_chat.storage import DEFAULT_STORE_FILE
from baza_chat.transport.http import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_S

logger = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".baza" / "config.json"
BASE_URL_ENV = "BAZA_BASE_URL"


class ClientConfig(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    language: str = DEFAULT_LANGUAGE
    timeout: float = DEFAULT_TIMEOUT_S
    max_attempts: Optional[int] = None
    probe_interval: float = DEFAULT_PROBE_INTERVAL_S
    store_path: str = str(DEFAULT_STORE_FILE)


def load_config(path: Path = CONFIG_FILE) -> ClientConfig:
    try:
        cfg = ClientConfig.model_validate(json.loads(path.read_text()))
    except FileNotFoundError:
        cfg = ClientConfig()
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("Ignoring invalid config %s: %s", path, e)
        cfg = ClientConfig()
    env_url = os.environ.get(BASE_URL_ENV)
    if env_url:
        cfg = cfg.model_copy(update={"base_url": env_url})
    return cfg


def save_config(cfg: ClientConfig, path: Path = CONFIG_FILE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(cfg.model_dump_json(indent=2))
