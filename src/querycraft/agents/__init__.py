from querycraft.agents.memory import ChatMemory
from querycraft.agents.model import AgentChatResponse
from querycraft.agents.output_parser import (
    ActionReasoningStep,
    BaseReasoningStep,
    ObservationReasoningStep,
    ReActOutputParser,
    ResponseReasoningStep,
    clean_response,
    parse_action_input,
)
from querycraft.agents.formatter import ReActChatFormatter
from querycraft.agents.react_agent import ReActAgent, MAX_STEPS_RESPONSE

__all__ = [
    "ChatMemory",
    "AgentChatResponse",
    "ActionReasoningStep",
    "BaseReasoningStep",
    "ObservationReasoningStep",
    "ReActOutputParser",
    "ResponseReasoningStep",
    "clean_response",
    "parse_action_input",
    "ReActChatFormatter",
    "ReActAgent",
    "MAX_STEPS_RESPONSE",
]
