import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from livesync.aggregator import parse_timestamp
from ..schemas import TournamentForm, TournamentUpdate
from ..store import BackingStore

logger = logging.getLogger(__name__)


class TournamentRegistry:
    """
    Manages tournament records:
    - Create/update/delete tournaments
    - Keep current_participants in step with approved registrations
    - Decide whether a tournament is accepting registrations
    """

    def __init__(self, store: BackingStore):
        self.store = store

    def create_tournament(self, form: TournamentForm) -> dict:
        """Create a new tournament with no participants."""
        row = form.model_dump()
        row['current_participants'] = 0
        tournament = self.store.insert('tournaments', row)[0]
        logger.info("Created tournament %s (%s)", tournament['id'], tournament['title'])
        return tournament

    def get_tournament(self, tournament_id: str) -> Optional[dict]:
        return self.store.get('tournaments', tournament_id)

    def list_tournaments(self, status: str = None, limit: int = None) -> List[dict]:
        """List tournaments, newest first, optionally by status."""
        filters = {'status': status} if status else None
        return self.store.select('tournaments', filters, order_by='-created_at', limit=limit)

    def update_tournament(self, tournament_id: str, form: TournamentUpdate) -> Tuple[bool, str, Optional[dict]]:
        tournament = self.get_tournament(tournament_id)
        if not tournament:
            return False, "Tournament not found", None

        patch = form.model_dump(exclude_unset=True)
        if not patch:
            return True, "Nothing to update", tournament

        start = patch.get('start_date') or parse_timestamp(tournament['start_date'])
        end = patch.get('end_date') or parse_timestamp(tournament['end_date'])
        if start and end and parse_timestamp(end) < parse_timestamp(start):
            return False, "End date must be after start date", None

        updated = self.store.update('tournaments', patch, {'id': tournament_id})
        return True, "Tournament updated", updated[0] if updated else None

    def delete_tournament(self, tournament_id: str) -> Tuple[bool, str]:
        """Delete a tournament nothing else points at."""
        tournament = self.get_tournament(tournament_id)
        if not tournament:
            return False, "Tournament not found"

        registrations = self.store.count('registrations', {'tournament_id': tournament_id})
        matches = self.store.count('matches', {'tournament_id': tournament_id})
        if registrations or matches:
            return False, (
                f"Cannot delete tournament with {registrations} registration(s) "
                f"and {matches} match(es)"
            )

        self.store.delete('tournaments', {'id': tournament_id})
        logger.info("Deleted tournament %s", tournament_id)
        return True, "Tournament deleted"

    def update_participant_count(self, tournament_id: str) -> int:
        """Recount approved registrations and store the result."""
        count = self.store.count('registrations', {
            'tournament_id': tournament_id,
            'status': 'approved'
        })
        self.store.update('tournaments', {'current_participants': count}, {'id': tournament_id})
        return count

    def accepting_registrations(self, tournament: dict, now: datetime = None) -> Tuple[bool, str]:
        if not tournament['registration_open']:
            return False, "Registration is closed for this tournament"
        if tournament['current_participants'] >= tournament['max_participants']:
            return False, "Tournament is full"

        deadline = tournament.get('registration_deadline')
        if deadline:
            now = now or datetime.now(timezone.utc)
            if parse_timestamp(now) > parse_timestamp(deadline):
                return False, "Registration deadline has passed"
        return True, "Open"