#!/usr/bin/env python3
"""
Database management script for deployment.

Usage:
    python manage_db.py init
    python manage_db.py create-admin EMAIL PASSWORD [--name NAME]
    python manage_db.py promote EMAIL
"""
import argparse
import sys

from arena.app import create_app
from arena.models import db, User


def init_db(args):
    """Create any missing tables."""
    db.create_all()
    print("✓ Database tables created.")


def create_admin(args):
    if User.query.filter_by(email=args.email.strip().lower()).first():
        print(f"User {args.email} already exists")
        sys.exit(1)
    user = User.create_user(args.email, args.password, is_admin=True, full_name=args.name)
    db.session.add(user)
    db.session.commit()
    print(f"✓ Admin {user.email} created.")


def promote(args):
    user = User.query.filter_by(email=args.email.strip().lower()).first()
    if user is None:
        print(f"No user with email {args.email}")
        sys.exit(1)
    user.is_admin = True
    db.session.commit()
    print(f"✓ {user.email} is now an admin.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Arena database tasks")
    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('init', help="create tables").set_defaults(func=init_db)

    admin = commands.add_parser('create-admin', help="create an admin user")
    admin.add_argument('email')
    admin.add_argument('password')
    admin.add_argument('--name', default=None)
    admin.set_defaults(func=create_admin)

    prom = commands.add_parser('promote', help="grant admin to an existing user")
    prom.add_argument('email')
    prom.set_defaults(func=promote)

    args = parser.parse_args(argv)
    app = create_app()
    with app.app_context():
        args.func(args)


if __name__ == '__main__':
    main()
