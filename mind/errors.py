"""Error kinds shared across the store, tool handlers and transports."""


class StorageError(Exception):
    """Any failure opening or querying the backing database."""


class ToolError(Exception):
    """A tool call that failed for a business reason (bad input, no match)."""
