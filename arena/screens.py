"""
View bindings for every live screen.

Each screen is a fetch (rows from the backing store), an aggregate (pure,
from livesync.aggregator) and the tables whose changes invalidate it.
Routes never query for a screen themselves; they build the binding here.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, List

from flask import Flask

from livesync.aggregator import (
    bucket_by_month,
    count_by_foreign_key,
    exclude_status,
    format_rate,
    only_status,
    trailing_months,
    win_rate,
)
from livesync.binding import ViewBinding, Watch
from .store import BackingStore

logger = logging.getLogger(__name__)

PUBLIC_SCREENS = {'tournaments', 'tournament', 'matches', 'leaderboard', 'featured_games'}
ADMIN_SCREENS = {'dashboard', 'registrations', 'teams'}


# Aggregates

def tournaments_view(rows: dict) -> List[dict]:
    registrations = count_by_foreign_key(
        rows['registrations'], 'tournament_id', exclude_status('rejected')
    )
    result = []
    for t in rows['tournaments']:
        item = dict(t)
        item['registration_count'] = registrations.get(t['id'], 0)
        item['spots_left'] = max(t['max_participants'] - t['current_participants'], 0)
        result.append(item)
    return result


def tournament_detail_view(rows: dict) -> dict:
    if not rows['tournament']:
        return None
    names = _team_names(rows['registrations'])
    detail = tournaments_view({
        'tournaments': [rows['tournament']],
        'registrations': rows['registrations'],
    })[0]
    detail['teams'] = [
        {'id': r['id'], 'team_name': r['team_name'], 'logo_url': r['logo_url']}
        for r in rows['registrations'] if r['status'] == 'approved'
    ]
    detail['matches'] = [_with_team_names(m, names) for m in rows['matches']]
    return detail


def matches_view(rows: dict) -> List[dict]:
    names = _team_names(rows['registrations'])
    titles = {t['id']: t['title'] for t in rows['tournaments']}
    result = []
    for m in rows['matches']:
        item = _with_team_names(m, names)
        item['tournament_title'] = titles.get(m['tournament_id'])
        result.append(item)
    return result


def leaderboard_view(rows: dict) -> List[dict]:
    teams = {r['id']: r for r in rows['registrations']}
    result = []
    for rank, entry in enumerate(rows['leaderboard'], start=1):
        team = teams.get(entry['team_id'], {})
        rate = win_rate(entry['wins'], entry['matches_played'])
        item = dict(entry)
        item.update({
            'rank': rank,
            'team_name': team.get('team_name', 'Unknown team'),
            'logo_url': team.get('logo_url'),
            'win_rate': rate,
            'win_rate_display': format_rate(rate),
        })
        result.append(item)
    return result


def dashboard_view(rows: dict, now: datetime = None, entry_fee: int = 10) -> dict:
    tournaments = rows['tournaments']
    registrations = rows['registrations']
    matches = rows['matches']

    months = trailing_months(now, count=3)
    activity = []
    buckets = {
        'tournaments': bucket_by_month(tournaments, 'created_at', months),
        'registrations': bucket_by_month(registrations, 'created_at', months),
        'matches': bucket_by_month(matches, 'created_at', months),
    }
    for i, bucket in enumerate(buckets['tournaments']):
        activity.append({
            'name': bucket['label'],
            'tournaments': bucket['count'],
            'registrations': buckets['registrations'][i]['count'],
            'matches': buckets['matches'][i]['count'],
        })

    titles = {t['id']: t['title'] for t in tournaments}
    recent_registrations = []
    for r in sorted(registrations, key=lambda r: r['created_at'] or '', reverse=True)[:3]:
        item = dict(r)
        item['tournament_title'] = titles.get(r['tournament_id'])
        recent_registrations.append(item)

    return {
        'stats': {
            'active_tournaments': sum(1 for t in tournaments if t['status'] == 'ongoing'),
            'total_registrations': len(registrations),
            'matches_completed': sum(1 for m in matches if m['status'] == 'completed'),
            'revenue': len(registrations) * entry_fee,
        },
        'activity': activity,
        'recent_tournaments': sorted(
            tournaments, key=lambda t: t['created_at'] or '', reverse=True
        )[:3],
        'recent_registrations': recent_registrations,
    }


def pending_registrations_view(rows: dict) -> List[dict]:
    titles = {t['id']: t['title'] for t in rows['tournaments']}
    result = []
    for r in rows['registrations']:
        item = dict(r)
        item['tournament_title'] = titles.get(r['tournament_id'])
        result.append(item)
    return result


def teams_view(rows: dict) -> dict:
    approved = [r for r in rows['registrations'] if r['status'] == 'approved']
    titles = {t['id']: t['title'] for t in rows['tournaments']}
    per_tournament = count_by_foreign_key(approved, 'tournament_id', only_status('approved'))
    return {
        'teams': [
            {
                'id': r['id'],
                'name': r['team_name'],
                'logo_url': r['logo_url'],
                'created_at': r['created_at'],
                'tournament_title': titles.get(r['tournament_id']),
                'registration': r,
            }
            for r in approved
        ],
        'teams_per_tournament': [
            {'tournament_id': tid, 'title': titles.get(tid), 'teams': count}
            for tid, count in per_tournament.items()
        ],
    }


def _team_names(registrations: List[dict]) -> Dict[str, str]:
    return {r['id']: r['team_name'] for r in registrations}


def _with_team_names(match: dict, names: Dict[str, str]) -> dict:
    item = dict(match)
    item['team1_name'] = names.get(match['team1_id'])
    item['team2_name'] = names.get(match['team2_id'])
    return item


# Bindings

class ScreenBindings:
    """Builds one ViewBinding per screen instance; callers own mount/close."""

    def __init__(self, app: Flask, store: BackingStore, entry_fee: int = 10):
        self.app = app
        self.store = store
        self.entry_fee = entry_fee

    def build(self, screen: str, on_render: Callable[[dict], None] = None, **params) -> ViewBinding:
        builder = getattr(self, f"_{screen}", None)
        if screen not in PUBLIC_SCREENS | ADMIN_SCREENS or builder is None:
            raise ValueError(f"Unknown screen: {screen}")
        logger.debug("Building %s screen %s", screen, params or '')
        return builder(on_render=on_render, **params)

    def snapshot(self, screen: str, **params) -> dict:
        """Fetch a screen once without subscribing."""
        binding = self.build(screen, **params)
        try:
            binding.refresh()
            return binding.snapshot()
        finally:
            binding.close()

    def _in_context(self, fetch: Callable[[], dict]) -> Callable[[], dict]:
        # Change callbacks may arrive on the feed's listener thread
        def run():
            with self.app.app_context():
                return fetch()
        return run

    def _binding(self, name, fetch, watches, aggregate, on_render) -> ViewBinding:
        return ViewBinding(
            name,
            self.store.feed,
            self._in_context(fetch),
            watches,
            aggregate=aggregate,
            on_render=on_render
        )

    def _tournaments(self, on_render=None, status: str = None) -> ViewBinding:
        def fetch():
            filters = {'status': status} if status else None
            return {
                'tournaments': self.store.select('tournaments', filters, order_by='-created_at'),
                'registrations': self.store.select('registrations'),
            }
        return self._binding(
            'tournaments', fetch,
            [Watch('tournaments'), Watch('registrations')],
            tournaments_view, on_render
        )

    def _tournament(self, on_render=None, tournament_id: str = None) -> ViewBinding:
        if not tournament_id:
            raise ValueError("tournament_id is required")

        def fetch():
            return {
                'tournament': self.store.get('tournaments', tournament_id),
                'registrations': self.store.select('registrations', {'tournament_id': tournament_id}),
                'matches': self.store.select('matches', {'tournament_id': tournament_id}, order_by='start_time'),
            }
        return self._binding(
            f'tournament:{tournament_id}', fetch,
            [
                Watch('tournaments', {'id': tournament_id}),
                Watch('registrations', {'tournament_id': tournament_id}),
                Watch('matches', {'tournament_id': tournament_id}),
            ],
            tournament_detail_view, on_render
        )

    def _matches(self, on_render=None, tournament_id: str = None) -> ViewBinding:
        def fetch():
            filters = {'tournament_id': tournament_id} if tournament_id else None
            return {
                'matches': self.store.select('matches', filters, order_by='start_time'),
                'registrations': self.store.select('registrations', filters),
                'tournaments': self.store.select('tournaments'),
            }
        watches = [
            Watch('matches', {'tournament_id': tournament_id} if tournament_id else None),
            Watch('tournaments'),
        ]
        return self._binding('matches', fetch, watches, matches_view, on_render)

    def _leaderboard(self, on_render=None) -> ViewBinding:
        def fetch():
            return {
                'leaderboard': self.store.select('leaderboard', order_by=['-total_points', '-wins']),
                'registrations': self.store.select('registrations'),
            }
        return self._binding('leaderboard', fetch, [Watch('leaderboard')], leaderboard_view, on_render)

    def _dashboard(self, on_render=None) -> ViewBinding:
        def fetch():
            return {
                'tournaments': self.store.select('tournaments'),
                'registrations': self.store.select('registrations'),
                'matches': self.store.select('matches'),
            }
        return self._binding(
            'dashboard', fetch,
            [Watch('tournaments'), Watch('registrations'), Watch('matches')],
            lambda rows: dashboard_view(rows, entry_fee=self.entry_fee), on_render
        )

    def _registrations(self, on_render=None) -> ViewBinding:
        def fetch():
            return {
                'registrations': self.store.select('registrations', {'status': 'pending'}, order_by='-created_at'),
                'tournaments': self.store.select('tournaments'),
            }
        return self._binding(
            'registrations', fetch, [Watch('registrations'), Watch('tournaments')],
            pending_registrations_view, on_render
        )

    def _teams(self, on_render=None) -> ViewBinding:
        def fetch():
            return {
                'registrations': self.store.select('registrations', {'status': 'approved'}, order_by='-created_at'),
                'tournaments': self.store.select('tournaments'),
            }
        return self._binding(
            'teams', fetch, [Watch('registrations', {'status': 'approved'}), Watch('tournaments')],
            teams_view, on_render
        )

    def _featured_games(self, on_render=None) -> ViewBinding:
        def fetch():
            return self.store.select('featured_games', order_by='sort_order')
        return self._binding('featured_games', fetch, [Watch('featured_games')], None, on_render)
