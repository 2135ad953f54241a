"""
Unit tests for MatchService.
Tests: create_match, update_match, update_score, set_status, delete_match
"""
from datetime import datetime, timedelta, timezone

import pytest

from arena.schemas import MatchForm, MatchUpdate


@pytest.fixture
def sample_match(app, db_session, sample_tournament, sample_teams):
    result = app.matches.create_match(MatchForm(
        tournament_id=sample_tournament['id'],
        team1_id=sample_teams[0]['id'],
        team2_id=sample_teams[1]['id'],
        start_time=datetime.now(timezone.utc) + timedelta(hours=2),
    ))
    assert result.success
    return result.data


class TestCreateMatch:
    """Tests for create_match method."""

    def test_starts_scheduled_with_zero_scores(self, sample_match):
        assert sample_match['status'] == 'scheduled'
        assert sample_match['team1_score'] == 0
        assert sample_match['team2_score'] == 0
        assert sample_match['round'] == 1

    def test_same_team_twice(self, app, db_session, sample_tournament, sample_teams):
        result = app.matches.create_match(MatchForm(
            tournament_id=sample_tournament['id'],
            team1_id=sample_teams[0]['id'],
            team2_id=sample_teams[0]['id'],
            start_time=datetime.now(timezone.utc),
        ))
        assert not result.success

    def test_unapproved_team(self, app, db_session, sample_tournament, sample_teams, pending_registration):
        result = app.matches.create_match(MatchForm(
            tournament_id=sample_tournament['id'],
            team1_id=sample_teams[0]['id'],
            team2_id=pending_registration['id'],
            start_time=datetime.now(timezone.utc),
        ))
        assert not result.success
        assert 'not approved' in result.message

    def test_team_from_other_tournament(self, app, db_session, sample_tournament, sample_teams):
        other = app.store.insert('tournaments', {
            'title': 'Other Cup',
            'game': 'BGMI',
            'start_date': datetime.now(timezone.utc),
            'end_date': datetime.now(timezone.utc) + timedelta(days=1),
        })[0]
        result = app.matches.create_match(MatchForm(
            tournament_id=other['id'],
            team1_id=sample_teams[0]['id'],
            team2_id=sample_teams[1]['id'],
            start_time=datetime.now(timezone.utc),
        ))
        assert not result.success
        assert 'not registered' in result.message

    def test_unknown_tournament(self, app, db_session, sample_teams):
        result = app.matches.create_match(MatchForm(
            tournament_id='missing',
            team1_id=sample_teams[0]['id'],
            team2_id=sample_teams[1]['id'],
            start_time=datetime.now(timezone.utc),
        ))
        assert result.message == 'Tournament not found'


class TestScores:
    """Tests for update_score and update_match."""

    def test_first_score_starts_match(self, app, sample_match):
        result = app.matches.update_score(sample_match['id'], 3, 1)
        assert result.success
        assert result.data['status'] == 'live'
        assert (result.data['team1_score'], result.data['team2_score']) == (3, 1)

    def test_completed_scores_frozen(self, app, sample_match):
        app.matches.set_status(sample_match['id'], 'completed')

        assert not app.matches.update_score(sample_match['id'], 5, 5).success
        assert not app.matches.update_match(sample_match['id'], MatchUpdate(team1_score=9)).success
        assert app.matches.get_match(sample_match['id'])['team1_score'] == 0

    def test_update_match_fields(self, app, sample_match):
        result = app.matches.update_match(
            sample_match['id'],
            MatchUpdate(stream_url='https://youtube.com/live/abc', status='live')
        )
        assert result.success
        assert result.data['stream_url'] == 'https://youtube.com/live/abc'
        assert result.data['status'] == 'live'

    def test_update_match_scores_start_match(self, app, sample_match):
        result = app.matches.update_match(sample_match['id'], MatchUpdate(team1_score=2))
        assert result.success
        assert result.data['status'] == 'live'
        assert result.data['team1_score'] == 2

    def test_update_match_scores_with_explicit_status(self, app, sample_match):
        result = app.matches.update_match(
            sample_match['id'], MatchUpdate(team1_score=4, team2_score=2, status='completed')
        )
        assert result.success
        assert result.data['status'] == 'completed'

    def test_update_match_invalid_transition(self, app, sample_match):
        app.matches.set_status(sample_match['id'], 'completed')
        result = app.matches.update_match(sample_match['id'], MatchUpdate(status='live'))
        assert not result.success


class TestStatus:
    """Tests for set_status and delete_match."""

    def test_live_back_to_scheduled(self, app, sample_match):
        app.matches.set_status(sample_match['id'], 'live')
        result = app.matches.set_status(sample_match['id'], 'scheduled')
        assert result.success
        assert result.data['status'] == 'scheduled'

    def test_completed_is_final(self, app, sample_match):
        app.matches.set_status(sample_match['id'], 'completed')
        result = app.matches.set_status(sample_match['id'], 'live')
        assert not result.success
        assert app.matches.get_match(sample_match['id'])['status'] == 'completed'

    def test_list_by_tournament(self, app, sample_match, sample_tournament):
        assert [m['id'] for m in app.matches.list_matches(sample_tournament['id'])] == [sample_match['id']]
        assert app.matches.list_matches('other') == []
        assert app.matches.list_matches(status='live') == []

    def test_delete(self, app, sample_match):
        assert app.matches.delete_match(sample_match['id']) == (True, 'Match deleted')
        assert app.matches.delete_match(sample_match['id']) == (False, 'Match not found')
