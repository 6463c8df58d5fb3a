from translatable.config import TranslatableSettings, configure, get_settings, reset_settings
from translatable.context import get_locale, reset_locale, set_locale, use_locale
from translatable.enums import LoadMode, TranslatableAction
from translatable.exceptions import ConfigurationError, MassAssignmentError, TranslatableError
from translatable.fillable import FillableMixin
from translatable.mixin import TranslatableMixin, TranslatedAttribute
from translatable.models import TranslatedValue
from translatable.persistence import PersistenceCoordinator, SessionStorage
from translatable.query import Query
from translatable.repository import TranslatableRepository

__all__ = [
    "ConfigurationError",
    "FillableMixin",
    "LoadMode",
    "MassAssignmentError",
    "PersistenceCoordinator",
    "Query",
    "SessionStorage",
    "TranslatableAction",
    "TranslatableError",
    "TranslatableMixin",
    "TranslatableRepository",
    "TranslatableSettings",
    "TranslatedAttribute",
    "TranslatedValue",
    "configure",
    "get_locale",
    "get_settings",
    "reset_locale",
    "reset_settings",
    "set_locale",
    "use_locale",
]
