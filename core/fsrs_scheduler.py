"""
FSRS (Free Spaced Repetition Scheduler) for objective flashcards.

When a study session has spaced repetition enabled, every flashcard
rating updates an FSRS card kept on the objective's progress row. The
card's due date becomes the objective's next review date, so objectives
whose cards fall due resurface in review sessions.

Key Concepts:
------------
- **Stability (S)**: Days until memory decays to 90% retention probability
- **Difficulty (D)**: Inherent difficulty of the item (1-10 scale)
- **State**: Learning phase (Learning, Review, Relearning)
- **Rating**: Learner feedback (1=Again, 2=Hard, 3=Good, 4=Easy)

References:
----------
- FSRS algorithm: https://github.com/open-spaced-repetition/fsrs4anki
"""

import logging
from datetime import datetime
from typing import Optional

from fsrs import Card, Rating, Scheduler, State

from config import Config
from core.dto.session import FlashcardRating, FlashcardSchedule
from core.timeutils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class FSRSScheduler:
    """
    FSRS spaced repetition scheduler for flashcard ratings.

    Wraps the fsrs library; one card is tracked per objective.
    """

    def __init__(self, desired_retention: Optional[float] = None):
        """
        Initialize FSRS scheduler.

        Args:
            desired_retention: Target retention probability (default: Config.FSRS_DESIRED_RETENTION)
        """
        self.desired_retention = desired_retention or Config.FSRS_DESIRED_RETENTION
        self.fsrs = Scheduler(desired_retention=self.desired_retention)

    def schedule(
        self,
        rating: FlashcardRating,
        current: Optional[FlashcardSchedule] = None,
        now: Optional[datetime] = None,
    ) -> FlashcardSchedule:
        """
        Apply a flashcard rating and compute the next review.

        Args:
            rating: Learner self-rating
            current: Existing card state (None for a first review)
            now: Review time (default: current UTC time)

        Returns:
            Updated FlashcardSchedule
        """
        now = ensure_utc(now) if now is not None else utc_now()

        card = Card()
        if current is not None:
            card.stability = current.stability
            card.difficulty = current.difficulty
            card.state = State(current.state)
            card.step = current.step
            card.last_review = current.last_review
            card.due = current.due

        scheduled_card, _ = self.fsrs.review_card(card, self._map_rating(rating), now)

        reps = (current.reps if current is not None else 0) + 1
        logger.debug(
            f"FSRS {rating.value}: stability={scheduled_card.stability:.2f} "
            f"due={scheduled_card.due.isoformat()}"
        )

        return FlashcardSchedule(
            stability=scheduled_card.stability,
            difficulty=scheduled_card.difficulty,
            state=scheduled_card.state.value,
            step=scheduled_card.step,
            due=scheduled_card.due,
            last_review=now,
            reps=reps,
        )

    def _map_rating(self, rating: FlashcardRating) -> Rating:
        """Map a flashcard rating to the FSRS Rating enum."""
        rating_map = {
            1: Rating.Again,
            2: Rating.Hard,
            3: Rating.Good,
            4: Rating.Easy,
        }
        return rating_map[rating.score]
