import json
import logging
import re
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, Field, ValidationError

from querycraft.errors import InvalidConfigError, StructuredOutputParseError
from querycraft.llms.base import ChatMessage, StructuredOutputLLM
from querycraft.node import NodeWithScore
from querycraft.response import Response, StreamingResponse
from querycraft.synthesizer.base import ResponseText
from querycraft.synthesizer.tree_summarize import TreeSummarize

logger = logging.getLogger(__name__)

JSON_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)

FORMAT_INSTRUCTIONS = (
    "\n\nThe output should be formatted as a JSON instance that conforms to the JSON schema below. "
    "Return ONLY the JSON instance.\n"
    "```json\n{schema}\n```\n"
)


def extract_json_str(text: str) -> str:
    """Pull the JSON payload out of an LLM answer (fenced block or outermost braces)."""
    match = JSON_FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]
    return text.strip()


class StructuredTreeSummarize(TreeSummarize):
    """
    Tree summarize whose final answer is a JSON instance of ``output_cls``.

    The JSON schema of ``output_cls`` is embedded in the final prompt, or
    passed natively to LLMs that support structured output. When the answer
    cannot be parsed the raw text is returned and ``parse_failed`` is set in
    the response metadata.

    Example:
        ```python
        class Biography(BaseModel):
            name: str
            best_known_for: List[str]

        synthesizer = StructuredTreeSummarize(llm=llm, output_cls=Biography)
        response = await synthesizer.asynthesize("Who is Ada Lovelace?", nodes)
        response.metadata["output"]  # Biography(...)
        ```
    """

    output_cls: Type[BaseModel] = Field(description="Pydantic model the final answer is parsed into")

    def __init__(self, **data: Any):
        super().__init__(**data)
        if self.streaming:
            raise InvalidConfigError("StructuredTreeSummarize does not support streaming")

    @property
    def json_schema(self) -> Dict[str, Any]:
        return self.output_cls.model_json_schema()

    async def _answer(self, query_str: str, context_str: str) -> ResponseText:
        prompt = self.summary_template.format(query_str=query_str, context_str=context_str)
        if isinstance(self.llm, StructuredOutputLLM):
            return await self.llm.chat_with_format([ChatMessage.user_message(prompt)], self.json_schema)
        schema_str = json.dumps(self.json_schema, indent=2)
        return await self._predict(prompt + FORMAT_INSTRUCTIONS.format(schema=schema_str))

    def parse_output(self, text: str) -> BaseModel:
        """
        Parse an answer into ``output_cls``.

        Raises:
            StructuredOutputParseError: If the text is not valid for ``output_cls``
        """
        try:
            return self.output_cls.model_validate_json(extract_json_str(text))
        except ValidationError as e:
            raise StructuredOutputParseError(
                f"Could not parse output into {self.output_cls.__name__}: {e}", raw_output=text
            ) from e

    async def aget_structured(self, query_str: str, text_chunks: List[str]) -> BaseModel:
        """Answer and parse; parse failures are raised."""
        return self.parse_output(await self.aget_response(query_str, text_chunks))

    def _prepare_response_output(
        self,
        result: ResponseText,
        source_nodes: List[NodeWithScore],
    ) -> Union[Response, StreamingResponse]:
        metadata = self._metadata_for_response(source_nodes)
        output: Optional[BaseModel] = None
        try:
            output = self.parse_output(result)
        except StructuredOutputParseError as e:
            logger.warning(f"Structured output parsing failed: {e}")
            metadata["parse_error"] = str(e)

        if output is None:
            metadata["parse_failed"] = True
            return Response(response=result, source_nodes=source_nodes, metadata=metadata)

        metadata["parse_failed"] = False
        metadata["output"] = output
        return Response(response=output.model_dump_json(), source_nodes=source_nodes, metadata=metadata)
