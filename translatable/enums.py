import logging
from enum import Enum
from typing import Any


class LoadMode(str, Enum):
    NATIVE = "native"
    JOINED = "joined"


class TranslatableAction(str, Enum):
    RESOLVE_FALLBACK = "resolve_fallback"
    CREATE_TRANSLATION = "create_translation"
    SAVE_ENTITY = "save_entity"
    SAVE_TRANSLATION = "save_translation"
    SAVE_FAILED = "save_failed"
    SAVE_SKIPPED = "save_skipped"
    JOIN_TRANSLATION = "join_translation"
    LIST_TRANSLATIONS = "list_translations"
    FETCH = "fetch"


def log_action(logger: logging.Logger, action: TranslatableAction, **kwargs: Any) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    details = " ".join(f"{key}={value!r}" for key, value in kwargs.items())
    logger.debug("%s %s", action.value, details)
