import logging
from typing import List, Optional, Tuple

from livesync.state_machine import MatchStateMachine, MatchStatus, TransitionError
from .base import ActionResult
from ..schemas import MatchForm, MatchUpdate
from ..store import BackingStore

logger = logging.getLogger(__name__)


class MatchService:
    """Scheduling, scoring and status changes for matches between approved teams."""

    def __init__(self, store: BackingStore):
        self.store = store

    def create_match(self, form: MatchForm) -> ActionResult:
        if not self.store.get('tournaments', form.tournament_id):
            return ActionResult(False, "Tournament not found")
        if form.team1_id == form.team2_id:
            return ActionResult(False, "A team cannot play against itself")

        for team_id in (form.team1_id, form.team2_id):
            team = self.store.get('registrations', team_id)
            if not team or team['tournament_id'] != form.tournament_id:
                return ActionResult(False, f"Team {team_id} is not registered for this tournament")
            if team['status'] != 'approved':
                return ActionResult(False, f"Team {team['team_name']} is not approved")

        match = self.store.insert('matches', {
            'tournament_id': form.tournament_id,
            'round': form.round,
            'team1_id': form.team1_id,
            'team2_id': form.team2_id,
            'team1_score': 0,
            'team2_score': 0,
            'status': MatchStatus.SCHEDULED.value,
            'start_time': form.start_time,
            'stream_url': form.stream_url,
        })[0]
        logger.info("Scheduled match %s in tournament %s", match['id'], form.tournament_id)
        return ActionResult(True, "Match created", match)

    def get_match(self, match_id: str) -> Optional[dict]:
        return self.store.get('matches', match_id)

    def list_matches(self, tournament_id: str = None, status: str = None) -> List[dict]:
        filters = {}
        if tournament_id:
            filters['tournament_id'] = tournament_id
        if status:
            filters['status'] = status
        return self.store.select('matches', filters, order_by='start_time')

    def update_match(self, match_id: str, form: MatchUpdate) -> ActionResult:
        match = self.get_match(match_id)
        if not match:
            return ActionResult(False, "Match not found")

        patch = form.model_dump(exclude_unset=True)
        sm = MatchStateMachine.from_state_string(match['status'])
        scores_changed = any(
            key in patch and patch[key] != match[key]
            for key in ('team1_score', 'team2_score')
        )
        if scores_changed and not sm.scores_editable:
            return ActionResult(False, "Scores of a completed match cannot change")

        target = patch.get('status')
        if target and target != match['status']:
            try:
                sm.move_to(MatchStatus(target))
            except TransitionError as e:
                return ActionResult(False, str(e))
        elif scores_changed and sm.state == MatchStatus.SCHEDULED:
            sm.transition('start')
            patch['status'] = sm.state.value

        if not patch:
            return ActionResult(True, "Nothing to update", match)
        updated = self.store.update('matches', patch, {'id': match_id})[0]
        return ActionResult(True, "Match updated", updated)

    def update_score(self, match_id: str, team1_score: int, team2_score: int) -> ActionResult:
        """Record live scores; a scheduled match goes live on its first score."""
        match = self.get_match(match_id)
        if not match:
            return ActionResult(False, "Match not found")

        sm = MatchStateMachine.from_state_string(match['status'])
        if not sm.scores_editable:
            return ActionResult(False, "Scores of a completed match cannot change")
        if sm.state == MatchStatus.SCHEDULED:
            sm.transition('start')

        updated = self.store.update('matches', {
            'team1_score': team1_score,
            'team2_score': team2_score,
            'status': sm.state.value,
        }, {'id': match_id})[0]
        return ActionResult(True, "Match scores updated", updated)

    def set_status(self, match_id: str, status: str) -> ActionResult:
        match = self.get_match(match_id)
        if not match:
            return ActionResult(False, "Match not found")

        sm = MatchStateMachine.from_state_string(match['status'])
        try:
            sm.move_to(MatchStatus(status))
        except TransitionError as e:
            return ActionResult(False, str(e))

        updated = self.store.update('matches', {'status': sm.state.value}, {'id': match_id})[0]
        return ActionResult(True, f"Match {sm.state.value}", updated)

    def delete_match(self, match_id: str) -> Tuple[bool, str]:
        if not self.store.delete('matches', {'id': match_id}):
            return False, "Match not found"
        return True, "Match deleted"
