"""
Unit tests for screen aggregates and ScreenBindings.
Tests: pure view functions, live refresh through the backing store,
       filtered screens, unknown screens
"""
from datetime import datetime, timedelta, timezone

import pytest

from arena.screens import dashboard_view, leaderboard_view, teams_view, tournaments_view
from arena.schemas import MatchForm


class TestViews:
    """Tests for the pure aggregate functions."""

    def test_tournaments_view_counts(self):
        rows = {
            'tournaments': [
                {'id': 't1', 'max_participants': 10, 'current_participants': 2},
                {'id': 't2', 'max_participants': 4, 'current_participants': 4},
            ],
            'registrations': [
                {'tournament_id': 't1', 'status': 'approved'},
                {'tournament_id': 't1', 'status': 'approved'},
                {'tournament_id': 't1', 'status': 'pending'},
                {'tournament_id': 't1', 'status': 'rejected'},
            ],
        }
        view = tournaments_view(rows)
        assert view[0]['registration_count'] == 3
        assert view[0]['spots_left'] == 8
        assert view[1]['registration_count'] == 0
        assert view[1]['spots_left'] == 0
        assert 'registration_count' not in rows['tournaments'][0]

    def test_leaderboard_view(self):
        rows = {
            'leaderboard': [
                {'team_id': 'r1', 'survival_points': 120, 'kill_points': 35, 'total_points': 155,
                 'matches_played': 10, 'wins': 6},
                {'team_id': 'gone', 'survival_points': 0, 'kill_points': 0, 'total_points': 0,
                 'matches_played': 0, 'wins': 0},
            ],
            'registrations': [{'id': 'r1', 'team_name': 'Owls', 'logo_url': None}],
        }
        view = leaderboard_view(rows)
        assert view[0]['rank'] == 1
        assert view[0]['team_name'] == 'Owls'
        assert view[0]['win_rate'] == 60.0
        assert view[0]['win_rate_display'] == '60.0%'
        assert view[1]['team_name'] == 'Unknown team'
        assert view[1]['win_rate_display'] == '0.0%'

    def test_dashboard_view(self):
        now = datetime(2024, 5, 15, 12, 0)
        rows = {
            'tournaments': [
                {'id': 't1', 'title': 'A', 'status': 'ongoing', 'created_at': '2024-05-01T10:00:00'},
                {'id': 't2', 'title': 'B', 'status': 'upcoming', 'created_at': '2024-04-01T10:00:00'},
            ],
            'registrations': [
                {'id': f'r{i}', 'tournament_id': 't1', 'created_at': f'2024-05-0{i}T10:00:00'}
                for i in range(1, 6)
            ],
            'matches': [
                {'id': 'm1', 'status': 'completed', 'created_at': '2024-05-02T10:00:00'},
                {'id': 'm2', 'status': 'live', 'created_at': '2024-05-03T10:00:00'},
            ],
        }
        view = dashboard_view(rows, now=now, entry_fee=10)

        assert view['stats'] == {
            'active_tournaments': 1,
            'total_registrations': 5,
            'matches_completed': 1,
            'revenue': 50,
        }
        assert view['activity'] == [
            {'name': 'Mar', 'tournaments': 0, 'registrations': 0, 'matches': 0},
            {'name': 'Apr', 'tournaments': 1, 'registrations': 0, 'matches': 0},
            {'name': 'May', 'tournaments': 1, 'registrations': 5, 'matches': 2},
        ]
        assert [t['id'] for t in view['recent_tournaments']] == ['t1', 't2']
        assert [r['id'] for r in view['recent_registrations']] == ['r5', 'r4', 'r3']
        assert view['recent_registrations'][0]['tournament_title'] == 'A'

    def test_teams_view(self):
        rows = {
            'registrations': [
                {'id': 'r1', 'tournament_id': 't1', 'team_name': 'Owls', 'status': 'approved',
                 'logo_url': None, 'created_at': None},
                {'id': 'r2', 'tournament_id': 't1', 'team_name': 'Hawks', 'status': 'approved',
                 'logo_url': None, 'created_at': None},
            ],
            'tournaments': [{'id': 't1', 'title': 'Monsoon Cup'}],
        }
        view = teams_view(rows)
        assert [t['name'] for t in view['teams']] == ['Owls', 'Hawks']
        assert view['teams_per_tournament'] == [{'tournament_id': 't1', 'title': 'Monsoon Cup', 'teams': 2}]


class TestScreenBindings:
    """Tests for bindings built over the backing store."""

    def test_unknown_screen(self, app):
        with pytest.raises(ValueError):
            app.screens.build('players')

    def test_snapshot_closes_binding(self, app, db_session, sample_tournament):
        snapshot = app.screens.snapshot('tournaments')
        assert snapshot['loading'] is False
        assert [t['id'] for t in snapshot['data']] == [sample_tournament['id']]
        assert app.feed.subscriber_count() == 0

    def test_leaderboard_refreshes_on_write(self, app, db_session, sample_teams):
        renders = []
        binding = app.screens.build('leaderboard', on_render=renders.append).mount()
        try:
            assert binding.snapshot()['data'] == []
            app.store.insert('leaderboard', {
                'team_id': sample_teams[0]['id'], 'survival_points': 120, 'kill_points': 35,
                'total_points': 155, 'matches_played': 10, 'wins': 6,
            })
            data = binding.snapshot()['data']
            assert data[0]['team_name'] == 'Team 1'
            assert data[0]['win_rate_display'] == '60.0%'
        finally:
            binding.close()
        assert app.feed.subscriber_count() == 0

    def test_matches_screen_filtered_by_tournament(self, app, db_session, sample_tournament, sample_teams, mocker):
        binding = app.screens.build('matches', tournament_id='other').mount()
        fetch = mocker.patch.object(binding, '_fetch', wraps=binding._fetch)
        try:
            app.matches.create_match(MatchForm(
                tournament_id=sample_tournament['id'],
                team1_id=sample_teams[0]['id'],
                team2_id=sample_teams[1]['id'],
                start_time=datetime.now(timezone.utc) + timedelta(hours=1),
            ))
            fetch.assert_not_called()
            assert binding.snapshot()['data'] == []
        finally:
            binding.close()

    def test_teams_screen_sees_rejection(self, app, db_session, sample_teams):
        binding = app.screens.build('teams').mount()
        try:
            assert len(binding.snapshot()['data']['teams']) == 4
            app.registrations.update_status(sample_teams[0]['id'], 'rejected')
            assert len(binding.snapshot()['data']['teams']) == 3
        finally:
            binding.close()

    def test_retitled_tournament_reaches_matches_and_teams(self, app, db_session, sample_tournament, sample_teams):
        app.matches.create_match(MatchForm(
            tournament_id=sample_tournament['id'],
            team1_id=sample_teams[0]['id'],
            team2_id=sample_teams[1]['id'],
            start_time=datetime.now(timezone.utc) + timedelta(hours=1),
        ))
        matches = app.screens.build('matches').mount()
        teams = app.screens.build('teams').mount()
        try:
            app.store.update('tournaments', {'title': 'Monsoon Cup Finals'}, {'id': sample_tournament['id']})

            assert matches.snapshot()['data'][0]['tournament_title'] == 'Monsoon Cup Finals'
            assert teams.snapshot()['data']['teams'][0]['tournament_title'] == 'Monsoon Cup Finals'
        finally:
            matches.close()
            teams.close()

    def test_tournament_detail(self,app, db_session, sample_tournament, sample_teams, pending_registration):
        snapshot = app.screens.snapshot('tournament', tournament_id=sample_tournament['id'])
        detail = snapshot['data']
        assert detail['registration_count'] == 5
        assert len(detail['teams']) == 4
        assert detail['matches'] == []

    def test_tournament_detail_missing(self, app, db_session):
        assert app.screens.snapshot('tournament', tournament_id='missing')['data'] is None

    def test_fetch_failure_keeps_data(self, app, db_session, sample_tournament, mocker):
        binding = app.screens.build('tournaments').mount()
        try:
            before = binding.snapshot()['data']
            mocker.patch.object(app.store, 'select', side_effect=ConnectionError("store unavailable"))
            binding.refresh()
            snapshot = binding.snapshot()
            assert snapshot['data'] == before
            assert snapshot['error'] == 'store unavailable'
        finally:
            binding.close()
