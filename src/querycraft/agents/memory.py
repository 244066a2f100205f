from typing import List, Optional

from pydantic import BaseModel, Field

from querycraft.llms.base import ChatMessage, MessageRole


class ChatMemory(BaseModel):
    """
    Conversation history of an agent.

    Only user and final assistant messages are kept between turns; the tool
    traffic of a turn stays local to that turn.
    """

    messages: List[ChatMessage] = Field(default_factory=list)
    max_messages: Optional[int] = Field(default=None, description="Keep only the most recent messages")

    def put(self, message: ChatMessage) -> None:
        self.messages.append(message)
        if self.max_messages is not None and len(self.messages) > self.max_messages:
            self.messages = self.messages[-self.max_messages:]

    def get_all(self) -> List[ChatMessage]:
        return list(self.messages)

    def last_user_message(self) -> Optional[ChatMessage]:
        for message in reversed(self.messages):
            if message.role == MessageRole.USER:
                return message
        return None

    def reset(self) -> None:
        self.messages = []

    def __len__(self) -> int:
        return len(self.messages)
