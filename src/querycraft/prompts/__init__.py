from querycraft.prompts.base import PromptTemplate, ChatPromptTemplate, PromptType, get_template_vars
from querycraft.prompts.mixin import PromptMixin
from querycraft.prompts.default_prompts import (
    DEFAULT_TEXT_QA_PROMPT,
    DEFAULT_REFINE_PROMPT,
    DEFAULT_TREE_SUMMARIZE_PROMPT,
    DEFAULT_SUMMARY_PROMPT,
    DEFAULT_SIMPLE_INPUT_PROMPT,
    DEFAULT_HYDE_PROMPT,
    DEFAULT_SINGLE_SELECT_PROMPT,
    DEFAULT_MULTI_SELECT_PROMPT,
    DEFAULT_SUB_QUESTION_PROMPT,
    DEFAULT_QUERY_KEYWORD_EXTRACT_PROMPT,
    DEFAULT_KG_TRIPLET_EXTRACT_PROMPT,
)

__all__ = [
    "PromptTemplate",
    "ChatPromptTemplate",
    "PromptType",
    "PromptMixin",
    "get_template_vars",
    "DEFAULT_TEXT_QA_PROMPT",
    "DEFAULT_REFINE_PROMPT",
    "DEFAULT_TREE_SUMMARIZE_PROMPT",
    "DEFAULT_SUMMARY_PROMPT",
    "DEFAULT_SIMPLE_INPUT_PROMPT",
    "DEFAULT_HYDE_PROMPT",
    "DEFAULT_SINGLE_SELECT_PROMPT",
    "DEFAULT_MULTI_SELECT_PROMPT",
    "DEFAULT_SUB_QUESTION_PROMPT",
    "DEFAULT_QUERY_KEYWORD_EXTRACT_PROMPT",
    "DEFAULT_KG_TRIPLET_EXTRACT_PROMPT",
]
