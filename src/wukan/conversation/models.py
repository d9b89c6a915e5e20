"""In-memory conversation transcript.

The conversation is the ordered list of messages and nothing else. It is
never persisted and is discarded when the session resets.
"""

from pydantic import BaseModel, Field

from ..llm.models import ChatMessage, StreamDelta


class Conversation(BaseModel):
    """Ordered chat transcript, oldest message first.

    Mutated only by appending messages or by growing the last message
    while a stream is in flight.
    """

    messages: list[ChatMessage] = Field(default_factory=list)

    @classmethod
    def from_prompt(cls, prompt: str) -> "Conversation":
        """Start a conversation seeded with the synthesized analysis prompt."""
        return cls(messages=[ChatMessage(role="user", content=prompt)])

    @property
    def last(self) -> ChatMessage | None:
        return self.messages[-1] if self.messages else None

    def add_user_message(self, content: str) -> ChatMessage:
        message = ChatMessage(role="user", content=content)
        self.messages.append(message)
        return message

    def begin_assistant_message(self) -> ChatMessage:
        """Append the empty assistant message that incoming deltas grow."""
        message = ChatMessage(role="assistant", content="", reasoning="")
        self.messages.append(message)
        return message

    def apply_delta(self, delta: StreamDelta) -> None:
        """Append a delta to the last message.

        Raises:
            ValueError: If the last message is not an assistant message
        """
        last = self.last
        if last is None or last.role != "assistant":
            raise ValueError("Deltas can only be applied to an assistant message")
        last.apply_delta(delta)

    def history(self) -> list[ChatMessage]:
        """Snapshot of the messages, safe to hand to a stream invocation."""
        return [message.model_copy() for message in self.messages]

    def reset(self) -> None:
        self.messages.clear()
