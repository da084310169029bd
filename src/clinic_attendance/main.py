from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from config import get_settings_module

from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .logging_setup import configure_logging

log = logging.getLogger(__name__)


def create_container() -> Container:
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    debug = bool(getattr(settings, "DEBUG", False))
    configure_logging(getattr(settings, "LOG_LEVEL", None) or ("DEBUG" if debug else None))

    db_config = getattr(settings, "DB_CONFIG")
    log.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        log.info("schema ready (tables=%s)", len(list_tables(db_config)))

    return build_container(
        db_config=db_config,
        cache_url=getattr(settings, "CACHE_URL", ""),
        attendance=getattr(settings, "ATTENDANCE", None),
    )
