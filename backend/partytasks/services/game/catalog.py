"""Static task pools.

The base pool and the bonus pool are immutable and shared by every
session. Weights are not stored: the draw engine decides which pool a
draw comes from, and picks uniformly inside it.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Tuple

from .errors import InvalidPayload
from .text import clean_text


MISS_A_TURN = 'MISS A TURN'
REMOVE_CLOTHING = 'REMOVE AN ITEM OF CLOTHING'
SWAP_SCORES = 'SWAP SCORES WITH ANOTHER PLAYER'

CUSTOM_TEXT_MAX = 100
DEFAULT_IMAGE_URL = '/images/default.jpg'
DEFAULT_CATEGORY = 'CUSTOM'


@dataclass(frozen=True)
class Task:
    text: str
    image_url: str
    category: str
    points: int
    is_webcam_task: bool = False
    is_ultimate: bool = False
    is_rare: bool = False
    is_special: bool = False

    @property
    def skips_turn(self) -> bool:
        return self.text == MISS_A_TURN

    @property
    def requires_webcam(self) -> bool:
        return self.is_webcam_task or self.text == REMOVE_CLOTHING

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def history_entry(self) -> Dict[str, Any]:
        return {'text': self.text, 'category': self.category, 'points': self.points}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Task':
        return cls(
            text=str(data['text']),
            image_url=str(data.get('image_url') or DEFAULT_IMAGE_URL),
            category=str(data.get('category') or DEFAULT_CATEGORY),
            points=int(data.get('points', 0)),
            is_webcam_task=bool(data.get('is_webcam_task', False)),
            is_ultimate=bool(data.get('is_ultimate', False)),
            is_rare=bool(data.get('is_rare', False)),
            is_special=bool(data.get('is_special', False)),
        )

    @classmethod
    def from_custom(cls, data) -> 'Task':
        """Build a player-authored task from an untrusted client payload.

        Only text, image_url, category and points are honoured; flags can
        never be set by a client. Points that are missing, zero or not an
        integer fall back to 1.
        """
        if not isinstance(data, dict):
            raise InvalidPayload('Task must be an object')
        text = clean_text(data.get('text'), CUSTOM_TEXT_MAX)
        if not text:
            raise InvalidPayload('Task text is required')
        try:
            points = int(data.get('points'))
        except (TypeError, ValueError, OverflowError):
            points = 0
        image_url = data.get('image_url') or data.get('imageUrl')
        category = data.get('category')
        return cls(
            text=text,
            image_url=image_url if isinstance(image_url, str) and image_url else DEFAULT_IMAGE_URL,
            category=clean_text(category, 30) if isinstance(category, str) and category.strip() else DEFAULT_CATEGORY,
            points=points or 1,
        )


PREDEFINED_TASKS: Tuple[Task, ...] = (
    Task(REMOVE_CLOTHING, '/images/CLOTHES.jpg', 'RISKY', 3, is_webcam_task=True),
    Task('20 SEC TEASE', '/images/FANTASY.jpg', 'INTIMATE', 2, is_webcam_task=True),
    Task('DESCRIBE A FANTASY', '/images/FANTASY.jpg', 'INTIMATE', 2),
    Task('TRUTH OR DARE', '/images/DARE.jpg', 'RISKY', 2),
    Task('ASK A QUESTION', '/images/QUESTION.jpg', 'MILD', 1),
    Task('DRINK', '/images/DRINK.jpg', 'MILD', 1),
    Task('NOTHING', '/images/NOTHING.jpg', 'SAFE', 0),
    Task(MISS_A_TURN, '/images/NOTHING.jpg', 'PENALTY', -1),
    Task('30 SEC REQUEST', '/images/30SEC.jpg', 'ULTIMATE BONUS', 10, is_ultimate=True),
)

BONUS_TASKS: Tuple[Task, ...] = (
    Task('BONUS! +2 Points', '/images/BONUS.jpg', 'BONUS', 2),
    Task('RARE BONUS! One step closer to Ultimate!', '/images/BONUS.jpg', 'RARE BONUS', 3, is_rare=True),
    Task(SWAP_SCORES, '/images/SWAP.jpg', 'SPECIAL BONUS', 0, is_special=True),
)

ULTIMATE_TASK = next(t for t in PREDEFINED_TASKS if t.is_ultimate)
RARE_BONUS_TASK = next(t for t in BONUS_TASKS if t.is_rare)
SWAP_TASK = next(t for t in BONUS_TASKS if t.text == SWAP_SCORES)
REGULAR_BONUS_TASKS: Tuple[Task, ...] = tuple(t for t in BONUS_TASKS if not t.is_rare and not t.is_special)
