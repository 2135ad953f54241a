import logging
from typing import List, Optional, Tuple

from livesync.aggregator import total_points
from .base import ActionResult
from ..schemas import LeaderboardForm, LeaderboardPoints
from ..store import BackingStore

logger = logging.getLogger(__name__)


class LeaderboardService:
    """
    Per-team cumulative points.

    One entry per team: saving points for a team that already has an entry
    updates it. total_points is recomputed on every write.
    """

    def __init__(self, store: BackingStore):
        self.store = store

    def save_points(self, form: LeaderboardForm) -> ActionResult:
        team = self.store.get('registrations', form.team_id)
        if not team:
            return ActionResult(False, "Team not found")
        if team['status'] != 'approved':
            return ActionResult(False, f"Team {team['team_name']} is not approved")

        row = _points_row(form)
        existing = self.store.select('leaderboard', {'team_id': form.team_id}, limit=1)
        if existing:
            entry = self.store.update('leaderboard', row, {'id': existing[0]['id']})[0]
            return ActionResult(True, "Points updated", entry)

        row['team_id'] = form.team_id
        entry = self.store.insert('leaderboard', row)[0]
        logger.info("Leaderboard entry %s created for team %s", entry['id'], form.team_id)
        return ActionResult(True, "Points added", entry)

    def update_entry(self, entry_id: str, form: LeaderboardPoints) -> ActionResult:
        if not self.store.get('leaderboard', entry_id):
            return ActionResult(False, "Leaderboard entry not found")
        entry = self.store.update('leaderboard', _points_row(form), {'id': entry_id})[0]
        return ActionResult(True, "Points updated", entry)

    def get_entry(self, entry_id: str) -> Optional[dict]:
        return self.store.get('leaderboard', entry_id)

    def list_entries(self) -> List[dict]:
        return self.store.select('leaderboard', order_by=['-total_points', '-wins'])

    def delete_entry(self, entry_id: str) -> Tuple[bool, str]:
        if not self.store.delete('leaderboard', {'id': entry_id}):
            return False, "Leaderboard entry not found"
        return True, "Leaderboard entry deleted"


def _points_row(form: LeaderboardPoints) -> dict:
    return {
        'survival_points': form.survival_points,
        'kill_points': form.kill_points,
        'total_points': total_points(form.survival_points, form.kill_points),
        'matches_played': form.matches_played,
        'wins': form.wins,
    }
