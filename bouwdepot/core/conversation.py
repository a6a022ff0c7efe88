"""Multi-turn conversation state threaded through a validation run."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

USER_ROLE = "user"
MODEL_ROLE = "model"


@dataclass(frozen=True)
class ConversationMessage:
    """One turn of the conversation."""

    role: str
    content: str
    step_name: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ConversationState:
    """Append-only, ordered list of user and model messages.

    One instance exists per validation run. Backends read it to rebuild
    prior turns; nothing removes or reorders messages.
    """

    def __init__(self, conversation_id: Optional[str] = None):
        self.id = conversation_id or str(uuid.uuid4())
        self._messages: List[ConversationMessage] = []

    def add_user_message(self, text: str, step_name: Optional[str] = None) -> ConversationMessage:
        message = ConversationMessage(role=USER_ROLE, content=text, step_name=step_name)
        self._messages.append(message)
        return message

    def add_model_message(self, text: str, step_name: Optional[str] = None) -> ConversationMessage:
        message = ConversationMessage(role=MODEL_ROLE, content=text, step_name=step_name)
        self._messages.append(message)
        return message

    @property
    def messages(self) -> Tuple[ConversationMessage, ...]:
        """Read-only view of the messages in insertion order."""
        return tuple(self._messages)

    def step_history(self, step_name: str) -> List[ConversationMessage]:
        """Messages tagged with ``step_name`` plus untagged ones."""
        return [m for m in self._messages if m.step_name is None or m.step_name == step_name]

    def formatted_history(self) -> str:
        """Render the conversation as ``ROLE: content`` blocks."""
        return "".join(f"{m.role.upper()}: {m.content}\n\n" for m in self._messages)

    def __len__(self) -> int:
        return len(self._messages)
