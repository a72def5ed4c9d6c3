from __future__ import annotations

import random
import uuid
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from .models import Participant


class Roster:
    """Participants in join order.

    Join order is the turn rotation order. ``by_score`` is for display only.
    """

    def __init__(self, rng: random.Random | None = None):
        self._players: list[Participant] = []
        self._rng = rng or random.Random()

    def __iter__(self) -> Iterator[Participant]:
        return iter(list(self._players))

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, participant_id: object) -> bool:
        return any(p.id == participant_id for p in self._players)

    def __getitem__(self, index: int) -> Participant:
        return self._players[index]

    def _new_id(self) -> str:
        pid = uuid.uuid4().hex[:12]
        while pid in self:
            pid = uuid.uuid4().hex[:12]
        return pid

    def default_name(self) -> str:
        return f"Speler {self._rng.randrange(100)}"

    def add(self, name: str = "", avatar: str = "", is_host: bool = False) -> Participant:
        from .models import Participant

        player = Participant(
            id=self._new_id(),
            name=(name or "").strip() or self.default_name(),
            avatar=avatar,
            is_host=is_host,
        )
        self._players.append(player)
        return player

    def remove(self, participant_id: str) -> tuple[Participant, int] | None:
        """Remove a participant. Returns ``(participant, former_index)`` or None if absent."""
        idx = self.index_of(participant_id)
        if idx < 0:
            return None
        player = self._players.pop(idx)

        if player.is_host and self._players:
            self._players[0].is_host = True

        return player, idx

    def get(self, participant_id: str | None) -> Participant | None:
        for p in self._players:
            if p.id == participant_id:
                return p
        return None

    def index_of(self, participant_id: str | None) -> int:
        for i, p in enumerate(self._players):
            if p.id == participant_id:
                return i
        return -1

    def host(self) -> Participant | None:
        for p in self._players:
            if p.is_host:
                return p
        return None

    def by_score(self) -> list[Participant]:
        return sorted(self._players, key=lambda p: p.score, reverse=True)

    def top_scorer(self) -> Participant | None:
        best = None
        for p in self._players:
            if best is None or p.score > best.score:
                best = p
        return best

    def guessers(self) -> list[Participant]:
        return [p for p in self._players if not p.is_drawing]

    def mark_drawer(self, participant_id: str | None) -> None:
        for p in self._players:
            p.is_drawing = p.id == participant_id

    def reset_guesses(self) -> None:
        for p in self._players:
            p.has_guessed = False

    def reset_scores(self) -> None:
        for p in self._players:
            p.score = 0
