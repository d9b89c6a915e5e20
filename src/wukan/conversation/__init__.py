from .models import Conversation
from .session import ConversationSession

__all__ = ["Conversation", "ConversationSession"]
