from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Literal, Union

from .roster import Roster
from .transcript import Transcript, now_ms


JoinMode = Literal["create", "join"]


class Phase(str, Enum):
    LOGIN = "LOGIN"
    LOBBY = "LOBBY"
    WORD_SELECTION = "WORD_SELECTION"
    DRAWING = "DRAWING"
    ROUND_END = "ROUND_END"
    GAME_END = "GAME_END"


class GameMode(str, Enum):
    CLASSIC = "Classic Mode"
    SPEED = "Speed Mode"
    CHAOS = "Chaos Mode"
    TEAM = "Team Mode"
    ZEN = "Zen Mode"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


ACTIVE_PHASES = frozenset({Phase.WORD_SELECTION, Phase.DRAWING, Phase.ROUND_END})


@dataclass
class Participant:
    id: str
    name: str
    avatar: str = ""
    is_host: bool = False
    score: int = 0
    is_drawing: bool = False
    has_guessed: bool = False


@dataclass(frozen=True)
class RoomSettings:
    time_per_round: int = 60
    rounds: int = 3
    word_count: int = 3
    hint_reveal_time: int = 30
    game_mode: GameMode = GameMode.CLASSIC
    difficulty: Difficulty = Difficulty.MEDIUM
    is_public: bool = False
    allow_join_via_link: bool = True
    animations_enabled: bool = True
    custom_words: tuple[str, ...] = ()


# Phase variants. Each one carries only the fields that exist in that phase.


@dataclass(frozen=True)
class LoginPhase:
    phase: ClassVar[Phase] = Phase.LOGIN


@dataclass(frozen=True)
class LobbyPhase:
    phase: ClassVar[Phase] = Phase.LOBBY


@dataclass(frozen=True)
class WordSelectionPhase:
    drawer_id: str
    word_options: tuple[str, ...]
    phase: ClassVar[Phase] = Phase.WORD_SELECTION


@dataclass(frozen=True)
class DrawingPhase:
    drawer_id: str
    word: str
    phase: ClassVar[Phase] = Phase.DRAWING


@dataclass(frozen=True)
class RoundEndPhase:
    drawer_id: str | None
    word: str
    phase: ClassVar[Phase] = Phase.ROUND_END


@dataclass(frozen=True)
class GameEndPhase:
    winner_id: str | None
    phase: ClassVar[Phase] = Phase.GAME_END


Stage = Union[
    LoginPhase,
    LobbyPhase,
    WordSelectionPhase,
    DrawingPhase,
    RoundEndPhase,
    GameEndPhase,
]


@dataclass
class GameState:
    """Authoritative state of one room.

    The flat attributes clients know (``word_to_guess``, ``word_options``,
    ``current_drawer_id`` ...) are derived from ``stage`` so they can never
    disagree with the phase.
    """

    room_code: str = ""
    stage: Stage = field(default_factory=LoginPhase)
    roster: Roster = field(default_factory=Roster)
    current_round: int = 0
    total_rounds: int = 3
    time_left: int = 0
    transcript: Transcript = field(default_factory=Transcript)
    settings: RoomSettings = field(default_factory=RoomSettings)
    # Set while nobody is in the room; cleared by any join.
    last_empty_at_ms: int | None = field(default_factory=now_ms)

    @property
    def phase(self) -> Phase:
        return self.stage.phase

    @property
    def current_drawer_id(self) -> str | None:
        return getattr(self.stage, "drawer_id", None)

    @property
    def word_to_guess(self) -> str | None:
        return getattr(self.stage, "word", None)

    @property
    def word_options(self) -> tuple[str, ...]:
        return getattr(self.stage, "word_options", ())

    @property
    def word_length(self) -> int:
        word = self.word_to_guess
        return len(word) if word else 0

    @property
    def winner_id(self) -> str | None:
        return getattr(self.stage, "winner_id", None)
