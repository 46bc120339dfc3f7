"""Exceptions raised by the tool bridge."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ValidationError


def describe_errors(exc: ValidationError) -> List[Dict[str, str]]:
    """Flatten a pydantic error into ``{"path", "message"}`` entries."""
    entries: List[Dict[str, str]] = []
    for error in exc.errors(include_url=False):
        path = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        if error.get("type") == "missing":
            message = "required field missing"
        else:
            message = str(error.get("msg", "invalid value"))
        entries.append({"path": path, "message": message})
    return entries


def format_validation_error(exc: ValidationError) -> str:
    return "; ".join(f"{entry['path']}: {entry['message']}" for entry in describe_errors(exc))


class ToolInputError(Exception):
    """Raised when caller-supplied arguments fail a tool's validator."""

    def __init__(self, tool_name: str, issues: Optional[List[Dict[str, str]]] = None) -> None:
        self.tool_name = tool_name
        self.issues = issues or []
        details = "; ".join(f"{issue['path']}: {issue['message']}" for issue in self.issues)
        super().__init__(f'Input validation failed for tool "{tool_name}": {details}')

    @classmethod
    def from_validation_error(cls, tool_name: str, exc: ValidationError) -> "ToolInputError":
        return cls(tool_name, describe_errors(exc))

    def to_payload(self) -> Dict[str, Any]:
        return {
            "error": "Invalid arguments",
            "reason": str(self),
            "tool": self.tool_name,
            "issues": self.issues,
        }


class DuplicateToolError(Exception):
    """Raised at startup when strict naming is enabled and two tools share a name."""

    def __init__(self, name: str, first: str, second: str) -> None:
        self.name = name
        super().__init__(f'Tool "{name}" is declared by both "{first}" and "{second}".')
