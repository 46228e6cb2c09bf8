import logging
from typing import Dict, List, Optional, Sequence, Set

from locallens.core.planner.models import (
    Activity, CandidatePlace, Coordinate, DailyPlan, LocalStory, TransportDetails
)
from locallens.core.planner.transport import TransportEstimator

logger = logging.getLogger(__name__)

DAY_BUDGET_MINUTES = 480
VISIT_DURATION_MINUTES = 90
LEG_CUTOFF_MINUTES = 30
MIN_REMAINING_MINUTES = 60

DEFAULT_ACTIVITY_TYPE = "point_of_interest"


class DayScheduler:
    """
    Greedy day filler.

    Walks the ranked candidates head-first with a single cursor that is shared
    across days, together with the traveler's position. For every candidate a
    leg is estimated from the current position:

      - if the leg leaves no more than LEG_CUTOFF_MINUTES of the day, the day is
        closed and the candidate stays at the head for the next day;
      - if the leg plus a VISIT_DURATION_MINUTES stop fits, the candidate is
        placed and the traveler moves there;
      - otherwise the candidate is dropped and the day continues.

    Days that end without any activity produce no DailyPlan.
    """

    def __init__(
        self,
        estimator: TransportEstimator,
        day_budget_minutes: int = DAY_BUDGET_MINUTES,
        visit_duration_minutes: int = VISIT_DURATION_MINUTES,
        leg_cutoff_minutes: int = LEG_CUTOFF_MINUTES,
        min_remaining_minutes: int = MIN_REMAINING_MINUTES,
    ):
        self.estimator = estimator
        self.day_budget_minutes = day_budget_minutes
        self.visit_duration_minutes = visit_duration_minutes
        self.leg_cutoff_minutes = leg_cutoff_minutes
        self.min_remaining_minutes = min_remaining_minutes

    def _build_activity(
        self,
        place: CandidatePlace,
        transport: TransportDetails,
        stories_by_place: Dict[str, LocalStory],
    ) -> Activity:
        story = stories_by_place.get(place.id)
        story_id: Optional[str] = story.id if story else None
        return Activity(
            place_id=place.id,
            name=place.name,
            latitude=place.latitude,
            longitude=place.longitude,
            type=place.types[0] if place.types else DEFAULT_ACTIVITY_TYPE,
            local_story_id=story_id,
            audio_guide_id=story_id,
            how_to_reach=transport,
        )

    async def schedule(
        self,
        ranked: Sequence[CandidatePlace],
        start_location: Coordinate,
        days: int,
        transport_mode: str,
        stories: Sequence[LocalStory] = (),
    ) -> List[DailyPlan]:
        if days < 1:
            raise ValueError("days must be at least 1")

        stories_by_place: Dict[str, LocalStory] = {}
        for story in stories:
            # first story per place wins
            stories_by_place.setdefault(story.place_id, story)

        plans: List[DailyPlan] = []
        used_ids: Set[str] = set()
        cursor = 0
        current = Coordinate(*start_location)

        for day_number in range(1, days + 1):
            remaining = self.day_budget_minutes
            activities: List[Activity] = []

            while cursor < len(ranked) and remaining > self.min_remaining_minutes:
                candidate = ranked[cursor]
                if candidate.id in used_ids:
                    cursor += 1
                    continue

                transport = await self.estimator.estimate(
                    current, candidate.coordinate, transport_mode
                )
                travel = transport.travel_time_minutes

                if remaining - travel <= self.leg_cutoff_minutes:
                    logger.info(
                        f"Day {day_number} full with {remaining} min left; "
                        f"'{candidate.name}' needs {travel} min travel"
                    )
                    break

                if remaining - travel - self.visit_duration_minutes >= 0:
                    activities.append(self._build_activity(candidate, transport, stories_by_place))
                    remaining -= travel + self.visit_duration_minutes
                    current = candidate.coordinate
                    used_ids.add(candidate.id)
                else:
                    logger.info(
                        f"Dropping '{candidate.name}': {travel} min travel plus visit "
                        f"exceeds {remaining} min left on day {day_number}"
                    )
                cursor += 1

            if activities:
                plans.append(DailyPlan(day_number=day_number, activities=activities))

        logger.info(f"Scheduled {sum(len(p.activities) for p in plans)} activities over {len(plans)} days")
        return plans
