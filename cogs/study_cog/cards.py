"""
Study card data model
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple


class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, value) -> 'Difficulty':
        """Unknown or missing values count as medium"""
        try:
            return cls(value)
        except ValueError:
            return cls.MEDIUM


class Filter(Enum):
    """Which cards of the deck are shown"""
    ALL = "all"
    LEARNED = "learned"
    TO_LEARN = "toLearn"
    FAVORITE = "favorite"

    @classmethod
    def parse(cls, value: str) -> 'Filter':
        """Accept either the wire value ('toLearn') or the member name ('to_learn')"""
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown filter: {value!r}") from None

    def matches(self, card: 'Card') -> bool:
        if self is Filter.LEARNED:
            return card.learned
        if self is Filter.TO_LEARN:
            return not card.learned
        if self is Filter.FAVORITE:
            return card.is_favourite
        return True


@dataclass(frozen=True)
class Card:
    """A single study card.

    Cards are immutable; the store swaps in an updated copy
    (``dataclasses.replace``) when a field changes, so ``id`` never moves.
    """
    id: str
    term: str
    translation: str
    synonym: Optional[str] = None
    example: Optional[str] = None
    example_translation: Optional[str] = None
    learned: bool = False
    is_favourite: bool = False
    time_spent: int = 0
    category: str = "word"
    tags: Tuple[str, ...] = field(default_factory=tuple)
    # Scheduling placeholders, carried but not used
    difficulty: Difficulty = Difficulty.MEDIUM
    review_count: int = 0
    ease_factor: float = 2.5
    interval: int = 1

    @classmethod
    def from_dict(cls, data: dict) -> 'Card':
        term = data['term']
        translation = data['translation']
        if not term or not translation:
            raise ValueError(f"Card {data.get('id')!r} is missing a term or translation")

        return cls(
            id=str(data['id']),
            term=term,
            translation=translation,
            synonym=data.get('synonym') or None,
            example=data.get('example') or None,
            example_translation=data.get('exampleTranslation') or None,
            learned=bool(data.get('learned', False)),
            is_favourite=bool(data.get('isFavourite', False)),
            time_spent=max(0, int(data.get('timeSpent') or 0)),
            category=data.get('category') or "word",
            tags=tuple(data.get('tags') or ()),
            difficulty=Difficulty.parse(data.get('difficulty')),
            review_count=int(data.get('reviewCount') or 0),
            ease_factor=float(data.get('easeFactor') or 2.5),
            interval=int(data.get('interval') or 1),
        )


@dataclass(frozen=True)
class DeckStats:
    total: int
    learned: int
    favourites: int
    time_spent: int

    @property
    def not_learned(self) -> int:
        return self.total - self.learned

    @property
    def learning_rate(self) -> int:
        """Learned cards as a rounded percentage of the deck"""
        # halves round up
        return math.floor(self.learned / (self.total or 1) * 100 + 0.5)


def filter_cards(cards: Iterable[Card], flt: Filter) -> List[Card]:
    """Ordered subsequence of ``cards`` matching ``flt``"""
    return [card for card in cards if flt.matches(card)]


def deck_stats(cards: Iterable[Card]) -> DeckStats:
    total = learned = favourites = time_spent = 0
    for card in cards:
        total += 1
        learned += card.learned
        favourites += card.is_favourite
        time_spent += card.time_spent
    return DeckStats(total=total, learned=learned, favourites=favourites, time_spent=time_spent)
