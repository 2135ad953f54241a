from typing import List, Tuple

from .base import ActionResult
from ..schemas import FeaturedGameForm, FeaturedGameUpdate
from ..store import BackingStore


class FeaturedGameService:
    """Games shown on the landing page, kept in a dense manual sort order."""

    def __init__(self, store: BackingStore):
        self.store = store

    def list_games(self) -> List[dict]:
        return self.store.select('featured_games', order_by='sort_order')

    def create_game(self, form: FeaturedGameForm) -> ActionResult:
        row = form.model_dump()
        row['sort_order'] = self.store.count('featured_games')
        game = self.store.insert('featured_games', row)[0]
        return ActionResult(True, "Game added", game)

    def update_game(self, game_id: str, form: FeaturedGameUpdate) -> ActionResult:
        if not self.store.get('featured_games', game_id):
            return ActionResult(False, "Game not found")
        patch = form.model_dump(exclude_unset=True)
        if not patch:
            return ActionResult(True, "Nothing to update", self.store.get('featured_games', game_id))
        game = self.store.update('featured_games', patch, {'id': game_id})[0]
        return ActionResult(True, "Game updated", game)

    def delete_game(self, game_id: str) -> Tuple[bool, str]:
        if not self.store.delete('featured_games', {'id': game_id}):
            return False, "Game not found"

        # Close the gap so sort_order stays 0..n-1
        for index, game in enumerate(self.list_games()):
            if game['sort_order'] != index:
                self.store.update('featured_games', {'sort_order': index}, {'id': game['id']})
        return True, "Game deleted"

    def move_game(self, game_id: str, direction: str) -> Tuple[bool, str]:
        """Swap a game's sort_order with its neighbour above or below."""
        games = self.list_games()
        index = next((i for i, g in enumerate(games) if g['id'] == game_id), None)
        if index is None:
            return False, "Game not found"

        neighbour = index - 1 if direction == 'up' else index + 1
        if neighbour < 0 or neighbour >= len(games):
            return False, f"Game is already at the {'top' if direction == 'up' else 'bottom'}"

        current, other = games[index], games[neighbour]
        self.store.update('featured_games', {'sort_order': other['sort_order']}, {'id': current['id']})
        self.store.update('featured_games', {'sort_order': current['sort_order']}, {'id': other['id']})
        return True, "Game moved"
