import logging
from typing import FrozenSet, Iterable, List, Sequence

from locallens.core.planner.models import CandidatePlace, UserPreferences

logger = logging.getLogger(__name__)

# Generically popular categories kept regardless of declared interests
COMMON_PLACE_TYPES: FrozenSet[str] = frozenset(
    {"tourist_attraction", "restaurant", "park", "museum", "beach"}
)


class CandidateSelector:
    """Filters the raw place pool against user preferences and ranks it by rating."""

    def __init__(self, common_types: Iterable[str] = COMMON_PLACE_TYPES):
        self.common_types = frozenset(common_types)

    def _matches_interest(self, place: CandidatePlace, interests: List[str]) -> bool:
        return any(
            interest in tag.lower()
            for tag in place.types
            for interest in interests
        )

    def _matches_common_type(self, place: CandidatePlace) -> bool:
        return any(tag in self.common_types for tag in place.types)

    def select(
        self,
        pool: Sequence[CandidatePlace],
        prefs: UserPreferences,
    ) -> List[CandidatePlace]:
        interests = [i.strip().lower() for i in prefs.interests if i and i.strip()]

        kept = [
            place for place in pool
            if self._matches_interest(place, interests) or self._matches_common_type(place)
        ]
        # sorted() is stable, so unrated places keep their input order at the tail
        ranked = sorted(
            kept,
            key=lambda p: (p.rating is None, -(p.rating or 0.0)),
        )

        logger.info(f"Selected {len(ranked)} of {len(pool)} candidate places")
        return ranked
