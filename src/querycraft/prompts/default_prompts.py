"""Default prompt templates."""
from querycraft.prompts.base import PromptTemplate, PromptType

DEFAULT_SUMMARY_PROMPT_TMPL = (
    "Write a summary of the following. Try to use only the information provided. "
    "Try to include as many key details as possible.\n"
    "\n"
    "{context_str}\n"
    "\n"
    "SUMMARY:"
)

DEFAULT_TREE_SUMMARIZE_TMPL = (
    "Context information from multiple sources is below.\n"
    "---------------------\n"
    "{context_str}\n"
    "---------------------\n"
    "Given the information from multiple sources and not prior knowledge, answer the query.\n"
    "Query: {query_str}\n"
    "Answer: "
)

DEFAULT_TEXT_QA_PROMPT_TMPL = (
    "Context information is below.\n"
    "---------------------\n"
    "{context_str}\n"
    "---------------------\n"
    "Given the context information and not prior knowledge, answer the query.\n"
    "Query: {query_str}\n"
    "Answer: "
)

DEFAULT_REFINE_PROMPT_TMPL = (
    "The original query is as follows: {query_str}\n"
    "We have provided an existing answer: {existing_answer}\n"
    "We have the opportunity to refine the existing answer (only if needed) with some more context below.\n"
    "------------\n"
    "{context_msg}\n"
    "------------\n"
    "Given the new context, refine the original answer to better answer the query. "
    "If the context isn't useful, return the original answer.\n"
    "Refined Answer: "
)

DEFAULT_QUERY_KEYWORD_EXTRACT_TMPL = (
    "A question is provided below. Given the question, extract up to {max_keywords} keywords from the text. "
    "Focus on extracting the keywords that we can use to best lookup answers to the question. Avoid stopwords.\n"
    "---------------------\n"
    "{question}\n"
    "---------------------\n"
    "Provide keywords in the following comma-separated format: 'KEYWORDS: <keywords>'\n"
)

DEFAULT_KG_TRIPLET_EXTRACT_TMPL = (
    "Some text is provided below. Given the text, extract up to {max_knowledge_triplets} knowledge triplets "
    "in the form of (subject, predicate, object). Avoid stopwords.\n"
    "---------------------\n"
    "Example:\n"
    "Text: Alice is Bob's mother.\n"
    "Triplets:\n"
    "(Alice, is mother of, Bob)\n"
    "Text: Philz is a coffee shop founded in Berkeley in 1982.\n"
    "Triplets:\n"
    "(Philz, is, coffee shop)\n"
    "(Philz, founded in, Berkeley)\n"
    "(Philz, founded in, 1982)\n"
    "---------------------\n"
    "Text: {text}\n"
    "Triplets:\n"
)

DEFAULT_SIMPLE_INPUT_TMPL = "{query_str}"

DEFAULT_HYDE_PROMPT_TMPL = (
    "Please write a passage to answer the question.\n"
    "Try to include as many key details as possible.\n"
    "\n"
    "Question: {query_str}\n"
    "\n"
    "Passage:"
)

DEFAULT_SINGLE_SELECT_PROMPT_TMPL = (
    "Some choices are given below. It is provided in a numbered list (1 to {num_choices}), "
    "where each item in the list corresponds to a summary.\n"
    "---------------------\n"
    "{context_list}\n"
    "---------------------\n"
    "Using only the choices above and not prior knowledge, return the choice that is most relevant "
    "to the question: '{query_str}'\n"
    "\n"
    "The output should be ONLY JSON formatted as a JSON instance.\n"
    "\n"
    "Here is an example:\n"
    "[\n"
    "    {\n"
    '        "choice": 1,\n'
    '        "reason": "<insert reason for choice>"\n'
    "    }\n"
    "]"
)

DEFAULT_MULTI_SELECT_PROMPT_TMPL = (
    "Some choices are given below. It is provided in a numbered list (1 to {num_choices}), "
    "where each item in the list corresponds to a summary.\n"
    "---------------------\n"
    "{context_list}\n"
    "---------------------\n"
    "Using only the choices above and not prior knowledge, return the top choices "
    "(no more than {max_outputs}, but only select what is needed) that are most relevant "
    "to the question: '{query_str}'\n"
    "\n"
    "The output should be ONLY JSON formatted as a JSON instance.\n"
    "\n"
    "Here is an example:\n"
    "[\n"
    "    {\n"
    '        "choice": 1,\n'
    '        "reason": "<insert reason for choice>"\n'
    "    },\n"
    "    ...\n"
    "]"
)

DEFAULT_SUB_QUESTION_PROMPT_TMPL = (
    "You are a helpful assistant that generates search queries based on multiple tools.\n"
    "You have access to the following tools:\n"
    "{tools_str}\n"
    "\n"
    "Given the following question, generate up to {num_questions} sub-questions that can be answered "
    "using the tools above.\n"
    "Each sub-question should be on a new line in the format: [tool_name] sub-question\n"
    "\n"
    "Question: {query_str}\n"
    "Sub-questions:"
)

DEFAULT_SUMMARY_PROMPT = PromptTemplate(DEFAULT_SUMMARY_PROMPT_TMPL, PromptType.SUMMARY)
DEFAULT_TREE_SUMMARIZE_PROMPT = PromptTemplate(DEFAULT_TREE_SUMMARIZE_TMPL, PromptType.TREE_SUMMARIZE)
DEFAULT_TEXT_QA_PROMPT = PromptTemplate(DEFAULT_TEXT_QA_PROMPT_TMPL, PromptType.QUESTION_ANSWER)
DEFAULT_REFINE_PROMPT = PromptTemplate(DEFAULT_REFINE_PROMPT_TMPL, PromptType.REFINE)
DEFAULT_QUERY_KEYWORD_EXTRACT_PROMPT = PromptTemplate(
    DEFAULT_QUERY_KEYWORD_EXTRACT_TMPL, PromptType.QUERY_KEYWORD_EXTRACT
)
DEFAULT_KG_TRIPLET_EXTRACT_PROMPT = PromptTemplate(
    DEFAULT_KG_TRIPLET_EXTRACT_TMPL, PromptType.KNOWLEDGE_TRIPLET_EXTRACT
)
DEFAULT_SIMPLE_INPUT_PROMPT = PromptTemplate(DEFAULT_SIMPLE_INPUT_TMPL, PromptType.SIMPLE_INPUT)
DEFAULT_HYDE_PROMPT = PromptTemplate(DEFAULT_HYDE_PROMPT_TMPL, PromptType.SUMMARY)
DEFAULT_SINGLE_SELECT_PROMPT = PromptTemplate(DEFAULT_SINGLE_SELECT_PROMPT_TMPL, PromptType.SINGLE_SELECT)
DEFAULT_MULTI_SELECT_PROMPT = PromptTemplate(DEFAULT_MULTI_SELECT_PROMPT_TMPL, PromptType.MULTI_SELECT)
DEFAULT_SUB_QUESTION_PROMPT = PromptTemplate(DEFAULT_SUB_QUESTION_PROMPT_TMPL, PromptType.SUB_QUESTION)
