"""Point rewards for correct guesses.

Guessers are rewarded by how much of the round clock was left; the drawer
earns a flat bonus for every participant who gets the word.
"""

from __future__ import annotations

from .models import Participant


GUESSER_BASE_REWARD = 50
GUESSER_TIME_REWARD = 100
DRAWER_REWARD = 20


def guesser_reward(time_left: int, time_budget: int) -> int:
    """``ceil(time_left / time_budget * 100) + 50``, in integer arithmetic."""
    if time_budget <= 0:
        return GUESSER_BASE_REWARD
    time_left = max(0, min(time_left, time_budget))
    time_part = -(-time_left * GUESSER_TIME_REWARD // time_budget)
    return time_part + GUESSER_BASE_REWARD


def drawer_reward() -> int:
    return DRAWER_REWARD


def apply_correct_guess(
    guesser: Participant,
    drawer: Participant | None,
    time_left: int,
    time_budget: int,
) -> int:
    """Credit a correct guess. Returns the guesser's reward."""
    reward = guesser_reward(time_left, time_budget)
    guesser.score += reward
    guesser.has_guessed = True
    if drawer is not None:
        drawer.score += drawer_reward()
    return reward
