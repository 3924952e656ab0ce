"""Template utilities - Prompt rendering and variable validation.

Prompts are Jinja2 templates ({{ target_lang }}, {% if prev_summary %}).
Plain {braces} are left alone so templates can show JSON examples
to the model.
"""

import logging
import re
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, UndefinedError

from chapterflow.errors import TemplateError

logger = logging.getLogger(__name__)

_env = Environment(undefined=StrictUndefined, keep_trailing_newline=True)


def extract_variables(template: str) -> set[str]:
    """Extract all variable names required by a template.

    Handles Jinja2 {{ var }}, {{ var | filter }}, {% for x in var %}
    and {% if var %} syntax.

    Args:
        template: Template string with placeholders

    Returns:
        Set of variable names required by the template

    Examples:
        >>> extract_variables("Translate into {{ target_lang }}")
        {'target_lang'}

        >>> extract_variables("{% for t in terms %}{{ t }}{% endfor %}")
        {'terms'}
    """
    variables: set[str] = set()

    # Jinja2 variable: {{ var }} or {{ var.field }}
    variables.update(re.findall(r"\{\{-?\s*(\w+)", template))

    # Jinja2 loop: {% for x in var %}
    variables.update(re.findall(r"\{%-?\s*for\s+\w+\s+in\s+(\w+)", template))

    # Jinja2 condition: {% if var %} or {% if not var %}
    variables.update(re.findall(r"\{%-?\s*(?:el)?if\s+(?:not\s+)?(\w+)", template))

    # Loop iteration variables are not inputs
    loop_vars = set(re.findall(r"\{%-?\s*for\s+(\w+)\s+in", template))
    variables -= loop_vars

    variables -= {"loop", "range", "true", "false", "none", "not"}

    return variables


def validate_variables(
    template: str,
    provided: dict[str, Any],
    prompt_name: str,
) -> None:
    """Validate that all required template variables are provided.

    Raises:
        TemplateError: If any required variables are missing
    """
    missing = extract_variables(template) - set(provided.keys())

    if missing:
        raise TemplateError(
            f"Missing required variable(s) for prompt '{prompt_name}': "
            f"{', '.join(sorted(missing))}"
        )


def render_template(
    template: str,
    variables: dict[str, Any],
    prompt_name: str = "prompt",
) -> str:
    """Render a prompt template.

    Args:
        template: Jinja2 template text
        variables: Values for the template variables
        prompt_name: Name used in error messages

    Returns:
        Rendered prompt text

    Raises:
        TemplateError: On syntax errors or missing variables
    """
    validate_variables(template, variables, prompt_name)

    try:
        compiled = _env.from_string(template)
        return compiled.render(**variables)
    except TemplateSyntaxError as e:
        raise TemplateError(
            f"Invalid template for prompt '{prompt_name}' (line {e.lineno}): {e.message}"
        ) from e
    except UndefinedError as e:
        raise TemplateError(f"Undefined variable in prompt '{prompt_name}': {e}") from e


__all__ = ["extract_variables", "validate_variables", "render_template"]
