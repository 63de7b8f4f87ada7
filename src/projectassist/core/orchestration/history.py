from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Literal

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Turn:
    role: Role
    text: str


@dataclass
class ConversationHistory:
    """Append-only record of a conversation.

    The caller owns it between turns; the orchestrator only appends while a
    turn is running, including generated answers that were later rejected.
    """

    turns: list[Turn] = field(default_factory=list)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> ConversationHistory:
        history = cls()
        for role, text in pairs:
            history.append(role, text)
        return history

    def append(self, role: str, text: str) -> Turn:
        if role not in ("user", "assistant"):
            raise ValueError(f"unsupported role: {role}")
        turn = Turn(role=role, text=text)  # type: ignore[arg-type]
        self.turns.append(turn)
        return turn

    def append_user(self, text: str) -> Turn:
        return self.append("user", text)

    def append_assistant(self, text: str) -> Turn:
        return self.append("assistant", text)

    def to_messages(self) -> list[dict[str, str]]:
        return [{"role": turn.role, "content": turn.text} for turn in self.turns]

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.turns)

    def __len__(self) -> int:
        return len(self.turns)
