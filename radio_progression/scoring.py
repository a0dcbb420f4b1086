"""Listening points: credits from listening and voting, gated debits for spending"""
from dataclasses import dataclass
from typing import Optional

from radio_progression.config import Settings, settings as default_settings
from radio_progression.errors import InsufficientPoints, InvalidAction
from radio_progression.models.profile import ListeningStats

@dataclass
class TickAward:
    """Outcome of one listening tick"""
    points_awarded: int = 0
    milestone: bool = False
    periodic: bool = False

    @property
    def notify(self) -> Optional[str]:
        """Toast type for this tick; a milestone takes priority over the periodic toast"""
        if self.milestone:
            return 'milestone'
        if self.periodic:
            return 'points'
        return None

class PointsEngine:
    """Applies point deltas to the balance held in ListeningStats"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    def apply_listening_tick(self, stats: ListeningStats) -> TickAward:
        """
        Award points for the tick that brought stats.total_time to its current value.

        Rules:
        - +1 point every SECONDS_PER_POINT seconds of listening
        - milestone when that award lands on a multiple of MILESTONE_POINTS
        - periodic toast every PERIODIC_NOTIFY_SECONDS, suppressed by a milestone
        """
        award = TickAward()
        total = stats.total_time
        if total <= 0:
            return award

        if total % self.settings.SECONDS_PER_POINT == 0:
            stats.points += 1
            award.points_awarded = 1
            award.milestone = stats.points % self.settings.MILESTONE_POINTS == 0

        if not award.milestone and total % self.settings.PERIODIC_NOTIFY_SECONDS == 0:
            award.periodic = True
        return award

    def periodic_points(self) -> int:
        """Points earned over one periodic notification window"""
        return self.settings.PERIODIC_NOTIFY_SECONDS // self.settings.SECONDS_PER_POINT

    def award_vote(self, stats: ListeningStats) -> int:
        """Credit a first vote on a song"""
        stats.points += self.settings.VOTE_POINTS
        return self.settings.VOTE_POINTS

    def can_afford(self, stats: ListeningStats, cost: int) -> bool:
        return stats.points >= cost

    def spend(self, stats: ListeningStats, cost: int) -> int:
        """
        Debit cost from the balance.

        Returns:
            int: the new balance

        Raises:
            InvalidAction: if cost is negative
            InsufficientPoints: if the balance would go below zero
        """
        if cost < 0:
            raise InvalidAction(f"Cost must not be negative, got {cost}")
        if not self.can_afford(stats, cost):
            raise InsufficientPoints(stats.points, cost)
        stats.points -= cost
        return stats.points
