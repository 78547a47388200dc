"""
TemplateRenderer for command templates.

Templates reference variables as ``$name`` or ``${name}``; ``$$`` is a
literal dollar sign. Rendering is a pure function of the template and the
variable bag.
"""
from string import Template
from typing import Any, Dict, Mapping

from cmdtree.exceptions import RenderError


def format_value(value: Any) -> str:
    """
    Convert a resolved variable value to the text used in commands.

    Strings are kept verbatim, booleans become ``true``/``false``, lists are
    joined with spaces and an absent value (None) becomes the empty string.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return " ".join(format_value(item) for item in value)
    return str(value)


class TemplateRenderer:
    """Substitutes variable values into command templates."""

    def render(self, template: str, variables: Mapping[str, Any]) -> str:
        """
        Render a template against a variable bag.

        Args:
            template: Template text.
            variables: Resolved variables keyed by name.

        Returns:
            The command text, ready to execute.

        Raises:
            RenderError: If the template references an unknown variable or
                contains a malformed placeholder.
        """
        values: Dict[str, str] = {name: format_value(value) for name, value in variables.items()}
        try:
            return Template(template).substitute(values)
        except KeyError as e:
            raise RenderError(f"Template references undefined variable '{e.args[0]}'.")
        except ValueError as e:
            raise RenderError(f"Malformed template '{template}': {e}. Write $$ for a literal $.")
