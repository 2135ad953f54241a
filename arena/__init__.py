"""
Arena - tournament site and admin back office

Responsibilities:
- Tournament, registration, match, leaderboard and featured game records
- Registration moderation with email notifications
- Live screens that refresh whenever their backing tables change
- Admin authentication and site settings
"""
