from __future__ import annotations

import logging
from typing import Optional

from dotenv import find_dotenv, load_dotenv


def load_env(path: Optional[str] = None) -> bool:
    """
    Load a .env file into os.environ.

    Must run before `src.brain.settings` is imported, settings are read once at import.
    Existing environment variables win over the file.
    """
    dotenv_path = path or find_dotenv(usecwd=True)
    if not dotenv_path:
        return False
    return bool(load_dotenv(dotenv_path, override=False))


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=(level or "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
