from querycraft.question_gen.types import BaseQuestionGenerator, SubQuestion, SubQuestionList
from querycraft.question_gen.llm_generator import LLMQuestionGenerator
from querycraft.question_gen.output_parser import parse_sub_questions

__all__ = [
    "BaseQuestionGenerator",
    "SubQuestion",
    "SubQuestionList",
    "LLMQuestionGenerator",
    "parse_sub_questions",
]
