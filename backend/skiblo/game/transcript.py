from __future__ import annotations

import time
import uuid
from dataclasses import asdict, dataclass
from typing import Iterator


SYSTEM_ID = "system"
SYSTEM_NAME = "System"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ChatMessage:
    id: str
    player_id: str
    player_name: str
    text: str
    is_system: bool = False
    is_correct_guess: bool = False
    timestamp: int = 0

    def to_dict(self) -> dict:
        d = asdict(self)
        return {
            "id": d["id"],
            "playerId": d["player_id"],
            "playerName": d["player_name"],
            "text": d["text"],
            "isSystem": d["is_system"],
            "isCorrectGuess": d["is_correct_guess"],
            "timestamp": d["timestamp"],
        }


class Transcript:
    """Append-only chat and system log of a room."""

    def __init__(self) -> None:
        self._entries: list[ChatMessage] = []

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> ChatMessage:
        return self._entries[index]

    @property
    def entries(self) -> tuple[ChatMessage, ...]:
        return tuple(self._entries)

    def _append(self, msg: ChatMessage) -> ChatMessage:
        self._entries.append(msg)
        return msg

    def system(self, text: str) -> ChatMessage:
        return self._append(
            ChatMessage(
                id=uuid.uuid4().hex[:9],
                player_id=SYSTEM_ID,
                player_name=SYSTEM_NAME,
                text=text,
                is_system=True,
                timestamp=now_ms(),
            )
        )

    def chat(self, player_id: str, player_name: str, text: str, is_correct_guess: bool = False) -> ChatMessage:
        return self._append(
            ChatMessage(
                id=uuid.uuid4().hex[:9],
                player_id=player_id,
                player_name=player_name,
                text=text,
                is_correct_guess=is_correct_guess,
                timestamp=now_ms(),
            )
        )
