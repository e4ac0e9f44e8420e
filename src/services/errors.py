"""Error types shared by the dispatcher and tool handlers."""


class GatewayError(Exception):
    """Base class for gateway errors."""

    pass


class UnknownToolError(GatewayError):
    """Raised when a tool call names an unregistered tool."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class InvalidArgumentsError(GatewayError):
    """Raised when tool arguments do not satisfy the tool's input schema."""

    def __init__(self, tool_name: str, errors: list[str]):
        self.tool_name = tool_name
        self.errors = list(errors)
        super().__init__(f"Invalid arguments for {tool_name}: {'; '.join(self.errors)}")


class InvalidRequestError(GatewayError):
    """Raised when a tool-call request body is malformed."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid request: {'; '.join(self.errors)}")
