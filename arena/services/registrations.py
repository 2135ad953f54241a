import logging
from typing import List, Optional

from livesync.state_machine import RegistrationStateMachine, RegistrationStatus, TransitionError
from .base import ActionResult
from .tournaments import TournamentRegistry
from ..notifications import NotificationClient
from ..schemas import RegistrationForm
from ..storage import AssetStorage
from ..store import BackingStore

logger = logging.getLogger(__name__)


class RegistrationService:
    """Team applications: public submission and admin moderation."""

    def __init__(
        self,
        store: BackingStore,
        tournaments: TournamentRegistry,
        notifier: NotificationClient,
        storage: AssetStorage
    ):
        self.store = store
        self.tournaments = tournaments
        self.notifier = notifier
        self.storage = storage

    def submit(self, tournament_id: str, form: RegistrationForm) -> ActionResult:
        tournament = self.tournaments.get_tournament(tournament_id)
        if not tournament:
            return ActionResult(False, "Tournament not found")

        accepting, reason = self.tournaments.accepting_registrations(tournament)
        if not accepting:
            return ActionResult(False, reason)

        personal = form.personal_info
        game = form.game_details
        prefs = form.tournament_details
        registration = self.store.insert('registrations', {
            'tournament_id': tournament_id,
            'team_name': form.team_details.team_name,
            'status': RegistrationStatus.PENDING.value,
            'team_members': [m.model_dump() for m in form.team_details.team_members],
            'contact_info': {
                'full_name': personal.full_name,
                'email': personal.email,
                'phone': personal.contact_number,
                'in_game_name': personal.in_game_name,
                'date_of_birth': personal.date_of_birth.isoformat(),
            },
            'game_details': {
                'platform': game.platform,
                'uid': game.uid,
                'device_model': game.device_model,
                'region': game.region,
            },
            'tournament_preferences': {
                'format': prefs.format,
                'mode': prefs.mode,
                'experience': prefs.experience,
                'previous_tournaments': prefs.previous_tournaments,
            },
            'logo_url': form.team_details.team_logo,
        })[0]
        logger.info("Registration %s submitted for tournament %s", registration['id'], tournament_id)

        warning = None
        sent = self.notifier.send_confirmation(
            personal.email,
            personal.full_name,
            registration['team_name'],
            tournament_id
        )
        if self.notifier.enabled and not sent:
            warning = "Registration saved, but the confirmation email could not be sent"

        return ActionResult(True, "Registration submitted", registration, warning)

    def get_registration(self, registration_id: str) -> Optional[dict]:
        return self.store.get('registrations', registration_id)

    def list_pending(self) -> List[dict]:
        return self.store.select('registrations', {'status': 'pending'}, order_by='-created_at')

    def list_teams(self, tournament_id: str = None) -> List[dict]:
        """Approved registrations, optionally for one tournament."""
        filters = {'status': 'approved'}
        if tournament_id:
            filters['tournament_id'] = tournament_id
        return self.store.select('registrations', filters, order_by='team_name')

    def update_status(self, registration_id: str, status: str) -> ActionResult:
        registration = self.get_registration(registration_id)
        if not registration:
            return ActionResult(False, "Registration not found")

        sm = RegistrationStateMachine.from_state_string(registration['status'])
        target = RegistrationStatus(status)
        if sm.state == target:
            return ActionResult(False, f"Registration is already {status}")
        try:
            sm.move_to(target)
        except TransitionError as e:
            return ActionResult(False, str(e))

        if target == RegistrationStatus.APPROVED:
            tournament = self.tournaments.get_tournament(registration['tournament_id'])
            if tournament and tournament['current_participants'] >= tournament['max_participants']:
                return ActionResult(False, "Tournament is full")

        patch = {'status': target.value}
        drop_logo = target == RegistrationStatus.REJECTED and self.storage.path_for(registration['logo_url'])
        if drop_logo:
            patch['logo_url'] = None

        updated = self.store.update('registrations', patch, {'id': registration_id})[0]
        # The file goes only once no row points at it
        if drop_logo:
            self.storage.delete(registration['logo_url'])
        self.tournaments.update_participant_count(registration['tournament_id'])
        logger.info("Registration %s is now %s", registration_id, target.value)

        warning = None
        contact = registration.get('contact_info') or {}
        sent = self.notifier.send_status_update(
            contact.get('email', ''),
            contact.get('full_name', ''),
            registration['team_name'],
            registration['tournament_id'],
            target.value
        )
        if self.notifier.enabled and not sent:
            warning = "Status updated, but the notification email could not be sent"

        return ActionResult(True, f"Registration {target.value}", updated, warning)
