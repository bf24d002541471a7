"""Tiered task draw and its side effects on the session.

The draw for the player holding the turn goes, in order:

1. three rare bonuses banked -> the ultimate task, counter back to 0
2. roll < RARE_BONUS_CHANCE  -> the rare bonus, counter + 1
3. roll < BASE_BONUS_CHANCE  -> a regular bonus task
4. otherwise                 -> any base task or any player's custom task

Afterwards the penalty, webcam and special flags are applied. A special
task leaves the turn open until its follow-up arrives; everything else
scores and passes the turn.
"""
import logging
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .catalog import (
    PREDEFINED_TASKS,
    RARE_BONUS_TASK,
    REGULAR_BONUS_TASKS,
    SWAP_SCORES,
    SWAP_TASK,
    ULTIMATE_TASK,
    Task,
)
from .errors import InvalidPayload, NotYourTurn
from .state import GameSession, Player, PlayerBonus
from .turns import TurnScheduler

logger = logging.getLogger(__name__)

RARE_BONUS_CHANCE = 0.03
BASE_BONUS_CHANCE = 0.10
RARES_FOR_ULTIMATE = 3


@dataclass
class DrawOutcome:
    player: Player
    task: Task
    ultimate: bool = False
    rare_count: Optional[int] = None
    skip_set: bool = False
    webcam: bool = False
    special: bool = False
    next_player_id: Optional[str] = None


@dataclass
class SwapOutcome:
    player: Player
    target: Player
    task: Task
    next_player_id: Optional[str] = None


class TaskDrawEngine:
    def __init__(self, session: GameSession, turns: TurnScheduler, rng: random.Random = None,
                 rare_chance: float = RARE_BONUS_CHANCE, base_chance: float = BASE_BONUS_CHANCE):
        self.session = session
        self.turns = turns
        self.rng = rng or random.Random()
        self.rare_chance = rare_chance
        self.base_chance = base_chance
        self._special_handlers: Dict[str, Callable[[Player], bool]] = {
            SWAP_SCORES: self._begin_swap,
        }

    def _require_turn(self, player_id: str) -> Player:
        player = self.session.current_player
        if player is None or player.id != player_id:
            raise NotYourTurn()
        return player

    def _pick(self, player: Player) -> DrawOutcome:
        bonus = self.session.player_bonuses.setdefault(player.id, PlayerBonus())
        if bonus.rare_count >= RARES_FOR_ULTIMATE:
            bonus.rare_count = 0
            return DrawOutcome(player=player, task=ULTIMATE_TASK, ultimate=True, rare_count=0)

        roll = self.rng.random()
        if roll < self.rare_chance:
            bonus.rare_count += 1
            return DrawOutcome(player=player, task=RARE_BONUS_TASK, rare_count=bonus.rare_count)
        if roll < self.base_chance:
            return DrawOutcome(player=player, task=self.rng.choice(REGULAR_BONUS_TASKS))
        pool: List[Task] = list(PREDEFINED_TASKS) + self.session.all_custom_tasks()
        return DrawOutcome(player=player, task=self.rng.choice(pool))

    def draw(self, player_id: str) -> DrawOutcome:
        player = self._require_turn(player_id)
        outcome = self._pick(player)
        task = outcome.task

        if task.skips_turn:
            self.turns.set_skip(player.id)
            outcome.skip_set = True
        if task.requires_webcam:
            self.session.active_webcam = player.id
            outcome.webcam = True

        if task.is_special:
            handler = self._special_handlers.get(task.text)
            if handler is not None and handler(player):
                outcome.special = True
                logger.info(f"[draw] player={player.id} special={task.text!r}")
                return outcome

        player.score += task.points
        outcome.next_player_id = self.turns.advance()
        logger.info(
            f"[draw] player={player.id} task={task.text!r} points={task.points} "
            f"score={player.score} next={outcome.next_player_id}"
        )
        return outcome

    def _begin_swap(self, player: Player) -> bool:
        # Nobody to swap with: the task resolves like a zero-point draw
        if len(self.session.players) < 2:
            return False
        self.session.pending_swap = player.id
        return True

    def swap_candidates(self, player_id: str) -> List[Player]:
        return [p for p in self.session.players if p.id != player_id]

    def complete_swap(self, player_id: str, target_id) -> SwapOutcome:
        player = self._require_turn(player_id)
        if self.session.pending_swap != player_id:
            raise NotYourTurn('No score swap is pending')
        target = self.session.find(target_id) if isinstance(target_id, str) else None
        if target is None or target.id == player_id:
            raise InvalidPayload('Choose another player to swap with')
        player.score, target.score = target.score, player.score
        next_player_id = self.turns.advance()
        logger.info(f"[swap] player={player.id} target={target.id} next={next_player_id}")
        return SwapOutcome(player=player, target=target, task=SWAP_TASK, next_player_id=next_player_id)
