"""Registry of optional site-specific callbacks ("hooks").

Hooks are configured in ``config.yaml`` as ``name: "package.module:function"``.
"""

import importlib
import logging
from typing import Callable

from .exceptions import HookNotSet

logger = logging.getLogger("mailprefs.hooks")

MBOX_SORT = "mbox_sort"
MDN_CHECK = "mdn_check"


def import_callable(path: str) -> Callable:
    """Resolve ``"module:attr"`` (or ``"module.attr"``) to an object."""
    if ":" in path:
        module_name, attr = path.split(":", 1)
    else:
        module_name, _, attr = path.rpartition(".")
    module = importlib.import_module(module_name)
    obj = module
    for part in attr.split("."):
        obj = getattr(obj, part)
    return obj


class HookRegistry:
    def __init__(self, hooks: dict[str, Callable] | None = None):
        self._hooks: dict[str, Callable] = dict(hooks or {})

    def register(self, name: str, func: Callable) -> None:
        self._hooks[name] = func

    def unregister(self, name: str) -> None:
        self._hooks.pop(name, None)

    def has_hook(self, name: str) -> bool:
        return name in self._hooks

    __contains__ = has_hook

    def call(self, name: str, *args):
        """Invoke a hook. Raises HookNotSet if nothing is registered."""
        try:
            func = self._hooks[name]
        except KeyError:
            raise HookNotSet(name) from None
        logger.debug("Calling hook %s", name)
        return func(*args)

    def load(self, mapping: dict[str, str]) -> None:
        """Register hooks from a ``{name: "module:function"}`` mapping."""
        for name, path in mapping.items():
            self.register(name, import_callable(path))
