"""
Unit tests for LeaderboardService.
Tests: save_points upsert, update_entry, list_entries ordering, delete_entry
"""
import pytest
from pydantic import ValidationError

from arena.schemas import LeaderboardForm, LeaderboardPoints


def _points(team_id, **kwargs):
    data = {'survival_points': 120, 'kill_points': 35, 'matches_played': 10, 'wins': 6}
    data.update(kwargs)
    return LeaderboardForm(team_id=team_id, **data)


class TestSavePoints:
    """Tests for save_points method."""

    def test_total_and_win_rate(self, app, db_session, sample_teams):
        result = app.leaderboard.save_points(_points(sample_teams[0]['id']))

        assert result.success
        assert result.data['total_points'] == 155
        assert result.data['win_rate'] == 60.0

    def test_second_save_updates_same_entry(self, app, db_session, sample_teams):
        first = app.leaderboard.save_points(_points(sample_teams[0]['id'])).data
        second = app.leaderboard.save_points(_points(sample_teams[0]['id'], kill_points=50)).data

        assert second['id'] == first['id']
        assert second['total_points'] == 170
        assert len(app.leaderboard.list_entries()) == 1

    def test_unapproved_team(self, app, db_session, pending_registration):
        result = app.leaderboard.save_points(_points(pending_registration['id']))
        assert not result.success

    def test_unknown_team(self, app, db_session):
        assert app.leaderboard.save_points(_points('missing')).message == 'Team not found'

    def test_wins_cannot_exceed_matches(self):
        with pytest.raises(ValidationError):
            LeaderboardPoints(matches_played=2, wins=3)


class TestEntries:
    """Tests for update_entry, list_entries and delete_entry."""

    def test_update_recomputes_total(self, app, db_session, sample_teams):
        entry = app.leaderboard.save_points(_points(sample_teams[0]['id'])).data
        result = app.leaderboard.update_entry(
            entry['id'],
            LeaderboardPoints(survival_points=10, kill_points=5, matches_played=0, wins=0)
        )
        assert result.data['total_points'] == 15
        assert result.data['win_rate'] == 0

    def test_ordered_by_points_then_wins(self, app, db_session, sample_teams):
        app.leaderboard.save_points(_points(sample_teams[0]['id'], survival_points=50, kill_points=0, wins=1))
        app.leaderboard.save_points(_points(sample_teams[1]['id'], survival_points=50, kill_points=0, wins=5))
        app.leaderboard.save_points(_points(sample_teams[2]['id'], survival_points=90, kill_points=0, wins=0))

        ordered = [e['team_id'] for e in app.leaderboard.list_entries()]
        assert ordered == [sample_teams[2]['id'], sample_teams[1]['id'], sample_teams[0]['id']]

    def test_delete(self, app, db_session, sample_teams):
        entry = app.leaderboard.save_points(_points(sample_teams[0]['id'])).data
        assert app.leaderboard.delete_entry(entry['id'])[0]
        assert app.leaderboard.get_entry(entry['id']) is None
        assert not app.leaderboard.delete_entry(entry['id'])[0]
