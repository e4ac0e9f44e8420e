"""Routes tool calls to their handlers after validating the arguments."""

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from jsonschema import Draft7Validator

from services.errors import InvalidArgumentsError, UnknownToolError
from services.tool_registry import ToolRegistry

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Awaitable[Any]]


class ToolDispatcher:
    """Dispatches ``(name, arguments)`` pairs to registered tool handlers."""

    def __init__(self, registry: ToolRegistry, handlers: Mapping[str, ToolHandler]):
        if registry is None:
            raise ValueError("registry is required")
        if handlers is None:
            raise ValueError("handlers is required")

        missing = [name for name in registry.names() if name not in handlers]
        if missing:
            raise ValueError(f"No handler registered for: {', '.join(missing)}")

        self._registry = registry
        self._handlers = {name: handlers[name] for name in registry.names()}
        self._validators = {
            tool.name: Draft7Validator(tool.input_schema) for tool in registry
        }

    def names(self) -> list[str]:
        return list(self._handlers)

    def validate(self, name: str, arguments: dict[str, Any]) -> None:
        """Check ``arguments`` against the tool's declared input schema."""
        validator = self._validators[name]
        errors = []
        for error in sorted(validator.iter_errors(arguments), key=lambda e: [str(p) for p in e.absolute_path]):
            field = ".".join(str(p) for p in error.absolute_path) or "arguments"
            errors.append(f"{field}: {error.message}")
        if errors:
            raise InvalidArgumentsError(name, errors)

    async def dispatch(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        """Validate and run one tool call, returning the handler's result."""
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownToolError(name)

        arguments = {} if arguments is None else arguments
        self.validate(name, arguments)

        logger.debug(f"Dispatching tool {name}")
        try:
            return await handler(arguments)
        except Exception as e:
            logger.error(f"Tool execution error ({name}): {e}")
            raise
