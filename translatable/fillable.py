from __future__ import annotations

from typing import Any, ClassVar, Mapping, Tuple

from translatable.exceptions import MassAssignmentError


class FillableMixin:
    """Field-level write authorization for mass assignment.

    ``__fillable__`` lists the keys that may be mass assigned. When it is
    empty every key not listed in ``__guarded__`` is fillable, and
    ``__guarded__ = ("*",)`` guards everything.
    """

    __fillable__: ClassVar[Tuple[str, ...]] = ()
    __guarded__: ClassVar[Tuple[str, ...]] = ("*",)

    def is_fillable(self, key: str) -> bool:
        if key in self.__fillable__:
            return True
        if self.is_guarded(key):
            return False
        return not self.__fillable__ and not key.startswith("_")

    def is_guarded(self, key: str) -> bool:
        return key in self.__guarded__ or self.__guarded__ == ("*",)

    def totally_guarded(self) -> bool:
        return not self.__fillable__ and self.__guarded__ == ("*",)

    def fill(self, attributes: Mapping[str, Any]) -> "FillableMixin":
        totally_guarded = self.totally_guarded()
        for key, value in attributes.items():
            if self.is_fillable(key):
                self.set_attribute(key, value)
            elif totally_guarded:
                raise MassAssignmentError(key)
        return self

    def set_attribute(self, key: str, value: Any) -> None:
        setattr(self, key, value)
