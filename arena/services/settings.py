from typing import Tuple

from ..models import db, User
from ..store import BackingStore

SETTINGS_ID = 1


class SettingsService:
    """Site-wide settings row and admin role management."""

    def __init__(self, store: BackingStore):
        self.store = store

    def get_settings(self) -> dict:
        row = self.store.get('site_settings', SETTINGS_ID)
        if row is None:
            return {'maintenance_mode': False, 'updated_at': None}
        return row

    def maintenance_mode(self) -> bool:
        return self.get_settings()['maintenance_mode']

    def set_maintenance_mode(self, enabled: bool) -> dict:
        if self.store.get('site_settings', SETTINGS_ID) is None:
            return self.store.insert('site_settings', {'id': SETTINGS_ID, 'maintenance_mode': enabled})[0]
        return self.store.update('site_settings', {'maintenance_mode': enabled}, {'id': SETTINGS_ID})[0]

    def set_admin(self, acting_user_id: str, user_id: str, is_admin: bool) -> Tuple[bool, str]:
        user = db.session.get(User, user_id)
        if not user:
            return False, "User not found"
        if user.id == acting_user_id and not is_admin:
            return False, "You cannot remove your own admin access"

        user.is_admin = is_admin
        db.session.commit()
        return True, f"{user.email} is {'now' if is_admin else 'no longer'} an admin"
