"""
Prompt templates.

Placeholders use ``{name}`` syntax. Formatting only replaces the variables
that are provided, so literal braces (e.g. JSON examples) never need escaping.
"""
import re
from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from querycraft.llms.base import ChatMessage

TEMPLATE_VAR_PATTERN = re.compile(r"\{(\w+)\}")


class PromptType(str, Enum):
    SUMMARY = "summary"
    TREE_SUMMARIZE = "tree_summarize"
    QUESTION_ANSWER = "text_qa"
    REFINE = "refine"
    KEYWORD_EXTRACT = "keyword_extract"
    QUERY_KEYWORD_EXTRACT = "query_keyword_extract"
    KNOWLEDGE_TRIPLET_EXTRACT = "knowledge_triplet_extract"
    SIMPLE_INPUT = "simple_input"
    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"
    SUB_QUESTION = "sub_question"
    CUSTOM = "custom"


def get_template_vars(template: str) -> List[str]:
    """Variable names in order of first appearance."""
    seen = []
    for name in TEMPLATE_VAR_PATTERN.findall(template):
        if name not in seen:
            seen.append(name)
    return seen


def format_string(template: str, **kwargs: Any) -> str:
    """Substitute the given variables in one pass; substituted text is never re-expanded."""
    def replace(match: "re.Match") -> str:
        name = match.group(1)
        return str(kwargs[name]) if name in kwargs else match.group(0)

    return TEMPLATE_VAR_PATTERN.sub(replace, template)


class PromptTemplate(BaseModel):
    """
    A text prompt with ``{variable}`` placeholders.

    Example:
        ```python
        qa = PromptTemplate("Context: {context_str}\\nQuery: {query_str}")
        partial = qa.partial_format(context_str="Paris is in France.")
        partial.format(query_str="Where is Paris?")
        ```
    """

    template: str
    prompt_type: PromptType = PromptType.CUSTOM
    kwargs: Dict[str, Any] = Field(default_factory=dict, description="Partially applied variables")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def __init__(self, template: str, prompt_type: PromptType = PromptType.CUSTOM, **data: Any):
        super().__init__(template=template, prompt_type=prompt_type, **data)

    @property
    def template_vars(self) -> List[str]:
        return get_template_vars(self.template)

    def format(self, **kwargs: Any) -> str:
        """Fill in the provided variables; unknown placeholders are left untouched."""
        return format_string(self.template, **{**self.kwargs, **kwargs})

    def format_messages(self, **kwargs: Any) -> List[ChatMessage]:
        return [ChatMessage.user_message(self.format(**kwargs))]

    def partial_format(self, **kwargs: Any) -> "PromptTemplate":
        """Return a copy with some variables bound."""
        return self.model_copy(update={"kwargs": {**self.kwargs, **kwargs}})

    def get_template(self) -> str:
        return self.template

    def __str__(self) -> str:
        return self.template


class ChatPromptTemplate(BaseModel):
    """A prompt made of several chat messages, each a template."""

    message_templates: List[ChatMessage]
    prompt_type: PromptType = PromptType.CUSTOM
    kwargs: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def template_vars(self) -> List[str]:
        names: List[str] = []
        for message in self.message_templates:
            for name in get_template_vars(message.content):
                if name not in names:
                    names.append(name)
        return names

    def format_messages(self, **kwargs: Any) -> List[ChatMessage]:
        variables = {**self.kwargs, **kwargs}
        return [
            message.model_copy(update={"content": format_string(message.content, **variables)})
            for message in self.message_templates
        ]

    def format(self, **kwargs: Any) -> str:
        return "\n".join(
            f"{m.role.value}: {m.content}" for m in self.format_messages(**kwargs)
        )

    def partial_format(self, **kwargs: Any) -> "ChatPromptTemplate":
        return self.model_copy(update={"kwargs": {**self.kwargs, **kwargs}})

    def get_template(self) -> str:
        return "\n".join(m.content for m in self.message_templates)
