"""Prompt templates rendered with Jinja2."""

from collections.abc import Mapping
from typing import Any

import jinja2

from llm_memory.exceptions import TemplateError

# Undefined variables raise instead of rendering as empty strings.
_environment = jinja2.Environment(
    undefined=jinja2.StrictUndefined,
    autoescape=False,
    keep_trailing_newline=True,
)


class PromptTemplate:
    """A Jinja2 prompt template.

    Supports variable interpolation (`{{ name }}`) and loops over sequences
    (`{% for doc in related_docs %}`). The source is compiled on first render.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self._template: jinja2.Template | None = None

    def _compile(self) -> jinja2.Template:
        if self._template is None:
            try:
                self._template = _environment.from_string(self.source)
            except jinja2.TemplateSyntaxError as e:
                raise TemplateError(
                    f"Malformed prompt template: {e.message}",
                    details={"line": e.lineno},
                ) from e
        return self._template

    def render(self, variables: Mapping[str, Any]) -> str:
        """Render the template.

        Args:
            variables: Values for the template's placeholders.

        Returns:
            Rendered prompt.

        Raises:
            TemplateError: If the template is malformed or references a
                variable that was not supplied.
        """
        template = self._compile()
        try:
            return template.render(**variables)
        except jinja2.UndefinedError as e:
            raise TemplateError(
                f"Unresolved template placeholder: {e.message}",
                details={"variables": sorted(variables)},
            ) from e
        except jinja2.TemplateError as e:
            raise TemplateError(f"Failed to render prompt template: {e}") from e


DEFAULT_RAG_TEMPLATE = """Context information is below.
---------------------
{% for doc in related_docs %}
{{ doc.content }}

{% endfor %}
---------------------
Given the context information and not prior knowledge,
answer the question: {{ query_str }}
"""
