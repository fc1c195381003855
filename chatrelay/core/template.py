"""Placeholder substitution for tool templates.

Templates reference values with ``${path.to.value}``. Paths are followed
through mappings by key and through lists by integer index.

Examples:
    >>> TemplateEngine.substitute("https://api.example.com/${city}", {"city": "Paris"})
    'https://api.example.com/Paris'
    >>> TemplateEngine.substitute("${a.b}", {})
    '${a.b}'
"""

import json
import re
from typing import Any

PLACEHOLDER_PATTERN = re.compile(r"\$\{([^}]+)\}")

_MISSING = object()


class TemplateEngine:
    """Substitutes ``${...}`` placeholders using a data object."""

    @staticmethod
    def resolve(path: str, data: Any) -> Any:
        """Follow a dotted path into ``data``.

        Returns:
            The value found, or None when any segment is missing
        """
        current = data
        for segment in path.strip().split("."):
            if current is None:
                return None
            if isinstance(current, dict):
                current = current.get(segment, _MISSING)
            elif isinstance(current, (list, tuple)) and segment.lstrip("-").isdigit():
                index = int(segment)
                current = current[index] if -len(current) <= index < len(current) else _MISSING
            else:
                current = _MISSING
            if current is _MISSING:
                return None
        return current

    @staticmethod
    def render(value: Any) -> str:
        if isinstance(value, (dict, list, tuple)):
            return json.dumps(value)
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    @classmethod
    def substitute(cls, template: Any, data: Any) -> Any:
        """Replace every placeholder in ``template`` with its value from ``data``.

        Args:
            template: Template text; non-string values are returned unchanged
            data: Object the placeholder paths are resolved against

        Returns:
            The substituted text. Placeholders that resolve to nothing are left as written.
        """
        if not isinstance(template, str):
            return template

        def _replace(match: "re.Match[str]") -> str:
            value = cls.resolve(match.group(1), data)
            if value is None:
                return match.group(0)
            return cls.render(value)

        return PLACEHOLDER_PATTERN.sub(_replace, template)
