"""Game progression engine.

One ``GameEngine`` owns the authoritative ``GameState`` of a room. Player
actions and the one-second tick are the only inputs; every public method
takes the engine lock, so actions and ticks are applied one at a time.
Listeners are notified after the lock is released.
"""

from __future__ import annotations

import logging
import random
from dataclasses import fields
from threading import RLock
from typing import Any, Callable, Iterable

from ..config import Config
from ..errors import InvalidNameError, NotEnoughPlayersError
from . import scoring
from .models import (
    ACTIVE_PHASES,
    Difficulty,
    DrawingPhase,
    GameEndPhase,
    GameMode,
    GameState,
    JoinMode,
    LobbyPhase,
    Participant,
    Phase,
    RoomSettings,
    RoundEndPhase,
    WordSelectionPhase,
)
from .roster import Roster
from .scheduler import ManualTickScheduler, TickScheduler
from .transcript import ChatMessage, now_ms
from .words import DEFAULT_WORDS_NL, WordCatalog, normalize_words, pick_words


logger = logging.getLogger(__name__)

Listener = Callable[["GameEngine"], None]

BOT_NAMES = ("Klaas", "Sophie", "Daan", "Emma", "Tim")
ANIMAL_AVATARS = ("🐱", "🐶", "🦊", "🐼", "🐸", "🦁", "🐦", "🐲", "🦉", "🐹", "🐯")


def default_settings() -> RoomSettings:
    return RoomSettings(
        time_per_round=Config.ROUND_DURATION_SEC,
        rounds=Config.ROUNDS_PER_MATCH,
        word_count=Config.WORD_CHOICES_COUNT,
        hint_reveal_time=min(Config.HINT_REVEAL_SEC, Config.ROUND_DURATION_SEC),
    )


def _clamp(value: Any, lo: int, hi: int, fallback: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        n = fallback
    return max(lo, min(hi, n))


def _enum_value(enum_cls, value: Any, fallback):
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if value in (member.value, member.name):
            return member
    return fallback


def sanitize_settings(base: RoomSettings, **changes: Any) -> RoomSettings:
    """Merge ``changes`` into ``base``, clamping out-of-range values.

    Unknown keys are ignored; nothing here raises.
    """
    values = {f.name: getattr(base, f.name) for f in fields(base)}
    values.update({k: v for k, v in changes.items() if k in values})

    time_per_round = _clamp(values["time_per_round"], 10, 300, base.time_per_round)

    custom = values["custom_words"]
    if isinstance(custom, str):
        custom = custom.split(",")
    if not isinstance(custom, (list, tuple)):
        custom = base.custom_words

    return RoomSettings(
        time_per_round=time_per_round,
        rounds=_clamp(values["rounds"], 1, 20, base.rounds),
        word_count=_clamp(values["word_count"], 1, 10, base.word_count),
        hint_reveal_time=_clamp(values["hint_reveal_time"], 0, time_per_round, base.hint_reveal_time),
        game_mode=_enum_value(GameMode, values["game_mode"], GameMode.CLASSIC),
        difficulty=_enum_value(Difficulty, values["difficulty"], Difficulty.MEDIUM),
        is_public=bool(values["is_public"]),
        allow_join_via_link=bool(values["allow_join_via_link"]),
        animations_enabled=bool(values["animations_enabled"]),
        custom_words=tuple(normalize_words(custom)),
    )


def is_correct_guess(text: str, word: str) -> bool:
    return text.strip().casefold() == word.strip().casefold()


class GameEngine:
    def __init__(
        self,
        room_code: str = "",
        settings: RoomSettings | None = None,
        scheduler: TickScheduler | None = None,
        rng: random.Random | None = None,
        words: Iterable[str] | None = None,
        choose_duration: int | None = None,
        reveal_duration: int | None = None,
        min_players: int | None = None,
    ):
        self.lock = RLock()
        self._rng = rng or random.Random()
        self._scheduler = scheduler or ManualTickScheduler()
        self._listeners: list[Listener] = []
        self._base_words = tuple(words) if words is not None else None
        self._vacated_slot: int | None = None

        self.choose_duration = Config.CHOOSE_DURATION_SEC if choose_duration is None else choose_duration
        self.reveal_duration = Config.REVEAL_DURATION_SEC if reveal_duration is None else reveal_duration
        self.min_players = Config.MIN_PLAYERS if min_players is None else min_players

        settings = settings or default_settings()
        self.state = GameState(
            room_code=room_code,
            roster=Roster(rng=self._rng),
            settings=settings,
            total_rounds=settings.rounds,
        )
        self._catalog = self._build_catalog()

    # ------------------------------------------------------------------
    # listeners

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("listener failed for room %s", self.state.room_code)

    def close(self) -> None:
        self._scheduler.stop()
        self._listeners.clear()

    # ------------------------------------------------------------------
    # actions

    def submit_join(self, name: str, avatar: str = "", mode: JoinMode = "create") -> Participant:
        n = (name or "").strip()
        if not n:
            raise InvalidNameError("Display name must not be empty")

        with self.lock:
            st = self.state
            if st.phase == Phase.LOGIN:
                player = st.roster.add(n, avatar, is_host=mode == "create")
                st.stage = LobbyPhase()
                logger.info("room %s opened by %s (%s)", st.room_code, player.name, mode)
            else:
                player = st.roster.add(n, avatar, is_host=False)
                logger.info("room %s: %s joined during %s", st.room_code, player.name, st.phase.value)
            st.last_empty_at_ms = None
            st.transcript.system(f"{player.name} is binnengekomen.")

        self._notify()
        return player

    def add_bot(self) -> Participant | None:
        with self.lock:
            st = self.state
            if st.phase != Phase.LOBBY:
                logger.debug("room %s: add_bot ignored in %s", st.room_code, st.phase.value)
                return None
            name = f"{self._rng.choice(BOT_NAMES)} (Bot)"
            bot = st.roster.add(name, self._rng.choice(ANIMAL_AVATARS), is_host=False)
            st.transcript.system(f"{bot.name} is binnengekomen.")

        self._notify()
        return bot

    def update_settings(self, **changes: Any) -> bool:
        with self.lock:
            st = self.state
            if st.phase not in (Phase.LOGIN, Phase.LOBBY):
                logger.debug("room %s: settings are frozen in %s", st.room_code, st.phase.value)
                return False
            st.settings = sanitize_settings(st.settings, **changes)
            st.total_rounds = st.settings.rounds
            self._catalog = self._build_catalog()

        self._notify()
        return True

    def start_game(self) -> bool:
        with self.lock:
            st = self.state
            if st.phase != Phase.LOBBY:
                logger.debug("room %s: start ignored in %s", st.room_code, st.phase.value)
                return False
            if len(st.roster) < self.min_players:
                raise NotEnoughPlayersError(have=len(st.roster), need=self.min_players)

            st.total_rounds = st.settings.rounds
            st.current_round = 0
            self._catalog = self._build_catalog()
            logger.info(
                "room %s: game started with %d players, %d rounds",
                st.room_code, len(st.roster), st.total_rounds,
            )
            self._advance_turn(next_index=0, wrapped=True)
            if st.phase in ACTIVE_PHASES:
                self._scheduler.start(self.tick)

        self._notify()
        return True

    def select_word(self, participant_id: str, word: str) -> bool:
        with self.lock:
            stage = self.state.stage
            if not isinstance(stage, WordSelectionPhase) or participant_id != stage.drawer_id:
                logger.debug("room %s: select_word by %s ignored", self.state.room_code, participant_id)
                return False

            wanted = (word or "").strip().casefold()
            chosen = next((w for w in stage.word_options if w.casefold() == wanted), None)
            if chosen is None:
                return False
            self._start_drawing(chosen)

        self._notify()
        return True

    def submit_guess(self, participant_id: str, text: str) -> ChatMessage | None:
        """Post chat text; a correct guess in DRAWING is scored instead of echoed.

        Blank text and ids not on the roster are dropped without a transcript
        entry; the return value is None for those.
        """
        if not isinstance(text, str) or not text.strip():
            return None

        with self.lock:
            st = self.state
            player = st.roster.get(participant_id)
            if player is None:
                return None

            stage = st.stage
            if (
                isinstance(stage, DrawingPhase)
                and player.id != stage.drawer_id
                and not player.has_guessed
                and is_correct_guess(text, stage.word)
            ):
                drawer = st.roster.get(stage.drawer_id)
                reward = scoring.apply_correct_guess(player, drawer, st.time_left, st.settings.time_per_round)
                msg = st.transcript.chat(
                    player.id,
                    player.name,
                    f"{player.name} heeft het woord geraden!",
                    is_correct_guess=True,
                )
                logger.info(
                    "room %s: %s guessed with %ds left (+%d)",
                    st.room_code, player.name, st.time_left, reward,
                )
                if self._everyone_guessed():
                    self._end_round(everyone_guessed=True)
            else:
                msg = st.transcript.chat(player.id, player.name, text)

        self._notify()
        return msg

    def tick(self) -> None:
        with self.lock:
            st = self.state
            if st.phase not in ACTIVE_PHASES:
                return
            if st.time_left > 0:
                st.time_left -= 1
            if st.time_left == 0:
                self._on_timeout()

        self._notify()

    def remove_participant(self, participant_id: str) -> bool:
        with self.lock:
            st = self.state
            stage = st.stage
            removed = st.roster.remove(participant_id)
            if removed is None:
                return False
            player, idx = removed
            st.transcript.system(f"{player.name} heeft het spel verlaten.")
            logger.info("room %s: %s left during %s", st.room_code, player.name, st.phase.value)
            if not len(st.roster):
                st.last_empty_at_ms = now_ms()

            if st.phase in ACTIVE_PHASES:
                self._after_removal(player, idx, stage)
            elif isinstance(stage, GameEndPhase) and stage.winner_id == player.id:
                winner = st.roster.top_scorer()
                st.stage = GameEndPhase(winner_id=winner.id if winner else None)

        self._notify()
        return True

    def reset_to_lobby(self) -> bool:
        with self.lock:
            st = self.state
            if st.phase != Phase.GAME_END:
                return False
            st.roster.reset_scores()
            st.roster.reset_guesses()
            st.roster.mark_drawer(None)
            st.stage = LobbyPhase()
            st.current_round = 0
            st.time_left = 0
            self._vacated_slot = None
            st.transcript.system("Terug naar de lobby.")

        self._notify()
        return True

    # ------------------------------------------------------------------
    # transitions (caller holds the lock)

    def _build_catalog(self) -> WordCatalog:
        base = self._base_words if self._base_words is not None else DEFAULT_WORDS_NL
        return WordCatalog(list(self.state.settings.custom_words) + list(base), rng=self._rng)

    def _draw_options(self) -> tuple[str, ...]:
        options = self._catalog.draw(self.state.settings.word_count)
        if not options:
            options = pick_words(DEFAULT_WORDS_NL, self.state.settings.word_count, self._rng)
        return tuple(options)

    def _everyone_guessed(self) -> bool:
        guessers = self.state.roster.guessers()
        return bool(guessers) and all(p.has_guessed for p in guessers)

    def _advance_turn(self, next_index: int, wrapped: bool) -> None:
        st = self.state
        if not len(st.roster):
            self._finish_game()
            return

        round_no = st.current_round + 1 if wrapped else st.current_round
        if round_no > st.total_rounds:
            self._finish_game()
            return

        st.current_round = round_no
        drawer = st.roster[next_index % len(st.roster)]
        st.roster.reset_guesses()
        st.roster.mark_drawer(drawer.id)
        st.stage = WordSelectionPhase(drawer_id=drawer.id, word_options=self._draw_options())
        st.time_left = self.choose_duration
        self._vacated_slot = None
        st.transcript.system(f"Ronde {round_no}! {drawer.name} is aan de beurt om te tekenen.")
        logger.info("room %s: round %d, drawer %s", st.room_code, round_no, drawer.name)

    def _start_drawing(self, word: str) -> None:
        st = self.state
        stage = st.stage
        st.stage = DrawingPhase(drawer_id=stage.drawer_id, word=word)
        st.time_left = st.settings.time_per_round
        st.roster.reset_guesses()
        st.transcript.system(f"Het woord is gekozen! Het heeft {len(word)} letters.")
        logger.info("room %s: word chosen (%d letters)", st.room_code, len(word))

    def _end_round(self, everyone_guessed: bool = False) -> None:
        st = self.state
        stage = st.stage
        if not isinstance(stage, DrawingPhase):
            return
        st.roster.mark_drawer(None)
        st.stage = RoundEndPhase(drawer_id=stage.drawer_id, word=stage.word)
        st.time_left = self.reveal_duration
        if everyone_guessed:
            st.transcript.system(f"Iedereen heeft het geraden! Het woord was: {stage.word}")
        else:
            st.transcript.system(f"Tijd is om! Het woord was: {stage.word}")
        logger.info("room %s: round %d ended", st.room_code, st.current_round)

    def _advance_after_round(self) -> None:
        st = self.state
        n = len(st.roster)
        if self._vacated_slot is not None:
            slot = self._vacated_slot
            next_index = slot % n if n else 0
            wrapped = slot >= n
        else:
            idx = st.roster.index_of(st.current_drawer_id)
            next_index = (idx + 1) % n if n else 0
            wrapped = next_index == 0
        self._advance_turn(next_index, wrapped)

    def _finish_game(self) -> None:
        st = self.state
        st.roster.mark_drawer(None)
        winner = st.roster.top_scorer()
        st.stage = GameEndPhase(winner_id=winner.id if winner else None)
        st.time_left = 0
        self._vacated_slot = None
        if winner is not None:
            st.transcript.system(f"Het spel is afgelopen! {winner.name} wint met {winner.score} punten.")
        else:
            st.transcript.system("Het spel is afgelopen!")
        self._scheduler.stop()
        logger.info("room %s: game over, winner %s", st.room_code, winner.name if winner else None)

    def _on_timeout(self) -> None:
        stage = self.state.stage
        if isinstance(stage, WordSelectionPhase):
            self._start_drawing(stage.word_options[0])
        elif isinstance(stage, DrawingPhase):
            self._end_round()
        elif isinstance(stage, RoundEndPhase):
            self._advance_after_round()

    def _after_removal(self, player: Participant, idx: int, stage) -> None:
        st = self.state
        if len(st.roster) < self.min_players:
            self._finish_game()
            return

        if getattr(stage, "drawer_id", None) != player.id:
            if self._vacated_slot is not None and idx < self._vacated_slot:
                self._vacated_slot -= 1
            if isinstance(stage, DrawingPhase) and self._everyone_guessed():
                self._end_round(everyone_guessed=True)
            return

        if isinstance(stage, RoundEndPhase):
            # cooldown keeps running; rotation resumes from the empty seat
            self._vacated_slot = idx
            st.stage = RoundEndPhase(drawer_id=None, word=stage.word)
            return

        if isinstance(stage, DrawingPhase):
            st.transcript.system(f"De tekenaar is weg. Het woord was: {stage.word}")
        n = len(st.roster)
        self._advance_turn(next_index=idx % n, wrapped=idx >= n)
