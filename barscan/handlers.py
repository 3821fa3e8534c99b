"""Registry of expression functions, actions and invalidators supplied by modules."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from barscan.misc import CaseFoldDict

log = logging.getLogger(__name__)


class ExprFlag(enum.IntFlag):
    """Properties of an expression function."""

    NONE = 0
    NUMERIC = 1
    DETERMINISTIC = 2


class ActionFlag(enum.IntFlag):
    """Properties of an action."""

    NONE = 0
    WIDGET_ADDRESS = 1
    CMD_BY_DEF = 2
    ADDRESS_ONLY = 4


@dataclass
class ExpressionHandler:
    """An expression function: called with (params, widget, event)."""

    name: str | None
    function: Callable[[list[Any], Any, Any], Any] | None
    parameters: str = ""
    flags: ExprFlag = ExprFlag.NONE


@dataclass
class ActionHandler:
    """An action: called with (param, addr, widget, event, window, state)."""

    name: str | None
    function: Callable[..., Any] | None
    flags: ActionFlag = ActionFlag.NONE


class HandlerRegistry:
    """Holds the functions and actions that modules register."""

    def __init__(self) -> None:
        self.expressions: CaseFoldDict = CaseFoldDict()
        self.actions: dict[str, ActionHandler] = {}
        self.invalidators: list[Callable[[], Any]] = []
        self.dep_trigger: Callable[[str], Any] | None = None

    def add_expression_handlers(
        self, handlers: Iterable[ExpressionHandler], module_name: str
    ) -> list[str]:
        """Register expression functions; returns the names newly added."""
        added = []
        for handler in handlers:
            if not handler.function or not handler.name:
                continue
            log.debug("module: register expr function '%s'", handler.name)
            if handler.name in self.expressions:
                log.info(
                    "Duplicate module expr function: %s in module %s",
                    handler.name,
                    module_name,
                )
                continue
            self.expressions[handler.name] = handler
            if self.dep_trigger is not None:
                self.dep_trigger(handler.name)
            added.append(handler.name)
        return added

    def add_action_handlers(
        self, handlers: Iterable[ActionHandler], module_name: str
    ) -> list[str]:
        """Register actions under lower-cased names; returns the names added."""
        added = []
        for handler in handlers:
            if not handler.function or not handler.name:
                continue
            key = handler.name.lower()
            log.debug("module: register action '%s'", handler.name)
            if key in self.actions:
                log.info(
                    "Duplicate module action: %s in module %s",
                    handler.name,
                    module_name,
                )
                continue
            self.actions[key] = handler
            added.append(key)
        return added

    def add_invalidator(self, invalidator: Callable[[], Any]) -> None:
        """Register a callback run by :meth:`invalidate_all`; latest runs first."""
        self.invalidators.insert(0, invalidator)

    def invalidate_all(self) -> None:
        """Run every registered invalidator."""
        for invalidator in self.invalidators:
            if invalidator is not None:
                invalidator()

    def action_get(self, name: str) -> ActionHandler | None:
        """The action registered under ``name`` (any case), if any."""
        return self.actions.get(name.lower())

    def action_exec(
        self,
        name: str,
        param: Any = None,
        addr: Any = None,
        widget: Any = None,
        event: Any = None,
        window: Any = None,
        state: Any = None,
    ) -> bool:
        """Run the named action; False if there is none."""
        handler = self.action_get(name)
        if handler is None:
            return False
        log.debug("module: calling action `%s`", name)
        handler.function(param, addr, widget, event, window, state)
        return True

    def is_function(self, identifier: str) -> bool:
        """True if an expression function of that name is registered."""
        return identifier in self.expressions

    def check_flag(self, identifier: str, flag: ExprFlag) -> bool:
        """True if the named expression function has ``flag`` set."""
        handler = self.expressions.get(identifier)
        if handler is None:
            return False
        return bool(handler.flags & flag)

    def call_function(
        self,
        identifier: str,
        params: list[Any] | None = None,
        widget: Any = None,
        event: Any = None,
    ) -> Any:
        """Call the named expression function; an unknown name gives ''."""
        handler = self.expressions.get(identifier)
        if handler is None:
            return ""
        log.debug("module: calling function `%s`", handler.name)
        return handler.function(list(params or []), widget, event)