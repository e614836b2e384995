from __future__ import annotations

from collections.abc import Iterator, Mapping
from importlib import import_module
from typing import TYPE_CHECKING, Any, Union, cast

from localhttp.settings import default_settings

if TYPE_CHECKING:
    from types import ModuleType

    # https://github.com/python/typing/issues/445#issuecomment-1131458824
    from _typeshed import SupportsItems

    _SettingsInputT = Union[SupportsItems[str, Any], None]


SETTINGS_PRIORITIES: dict[str, int] = {
    "default": 0,
    "command": 10,
    "project": 20,
    "cmdline": 40,
}


def get_settings_priority(priority: int | str) -> int:
    """
    Look up a string priority in
    :attr:`~localhttp.settings.SETTINGS_PRIORITIES`, or return a numerical
    priority as it is.
    """
    if isinstance(priority, str):
        return SETTINGS_PRIORITIES[priority]
    return priority


class SettingsAttribute:
    """A setting value with the priority it was set at."""

    def __init__(self, value: Any, priority: int):
        self.value: Any = value
        self.priority: int = priority

    def set(self, value: Any, priority: int) -> None:
        """Sets value if priority is higher or equal than current priority."""
        if priority >= self.priority:
            self.value = value
            self.priority = priority

    def __repr__(self) -> str:
        return f"<SettingsAttribute value={self.value!r} priority={self.priority}>"


class BaseSettings(Mapping[str, Any]):
    """
    Read-only mapping of setting names to values, where every value carries
    the priority it was set at. A value only replaces another one set at the
    same or a lower priority, so that command line options win over the
    values a program passes in, which win over the defaults.

    ``priority`` is a key of :attr:`~localhttp.settings.SETTINGS_PRIORITIES`
    or an integer. Values taken from another :class:`BaseSettings` keep their
    own priorities.
    """

    def __init__(self, values: _SettingsInputT = None, priority: int | str = "project"):
        self.attributes: dict[str, SettingsAttribute] = {}
        if values:
            self.update(values, priority)

    def __getitem__(self, opt_name: str) -> Any:
        if opt_name not in self:
            return None
        return self.attributes[opt_name].value

    def __contains__(self, name: Any) -> bool:
        return name in self.attributes

    def __iter__(self) -> Iterator[str]:
        return iter(self.attributes)

    def __len__(self) -> int:
        return len(self.attributes)

    def get(self, name: str, default: Any = None) -> Any:
        return self[name] if self[name] is not None else default

    def getbool(self, name: str, default: bool = False) -> bool:
        """
        Get a setting value as a boolean.

        ``1``, ``'1'``, ``True`` and ``'True'`` return ``True``, while ``0``,
        ``'0'``, ``False``, ``'False'`` and ``None`` return ``False``.
        """
        got = self.get(name, default)
        try:
            return bool(int(got))
        except ValueError:
            if got in ("True", "true"):
                return True
            if got in ("False", "false"):
                return False
            raise ValueError(
                "Supported values for boolean settings "
                "are 0/1, True/False, '0'/'1', "
                "'True'/'False' and 'true'/'false'"
            )

    def getint(self, name: str, default: int = 0) -> int:
        return int(self.get(name, default))

    def getfloat(self, name: str, default: float = 0.0) -> float:
        return float(self.get(name, default))

    def getpriority(self, name: str) -> int | None:
        if name not in self:
            return None
        return self.attributes[name].priority

    def set(self, name: str, value: Any, priority: int | str = "project") -> None:
        priority = get_settings_priority(priority)
        if name not in self:
            self.attributes[name] = SettingsAttribute(value, priority)
        else:
            self.attributes[name].set(value, priority)

    def setdict(self, values: _SettingsInputT, priority: int | str = "project") -> None:
        self.update(values, priority)

    def setmodule(
        self, module: ModuleType | str, priority: int | str = "project"
    ) -> None:
        """Set every uppercase global of ``module`` with ``priority``."""
        if isinstance(module, str):
            module = import_module(module)
        for key in dir(module):
            if key.isupper():
                self.set(key, getattr(module, key), priority)

    def update(self, values: _SettingsInputT, priority: int | str = "project") -> None:
        if values is None:
            return
        if isinstance(values, BaseSettings):
            for name, value in values.items():
                self.set(name, value, cast(int, values.getpriority(name)))
        else:
            for name, value in values.items():
                self.set(name, value, priority)


class Settings(BaseSettings):
    """
    Settings of the reply reader, the request encoder and logging, with the
    values of :mod:`localhttp.settings.default_settings` already set at the
    ``default`` priority.
    """

    def __init__(self, values: _SettingsInputT = None, priority: int | str = "project"):
        super().__init__()
        self.setmodule(default_settings, "default")
        self.update(values, priority)
