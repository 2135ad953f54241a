#!/usr/bin/env python3
"""
Entry point for the Arena tournament site.

Usage:
    python run.py

Environment Variables:
    FLASK_ENV: development, production or testing (default: development)
    PORT: Port to run on (default: 5000)
    CHANGE_FEED: redis or local (development defaults to local)
"""
import os

from arena.app import create_app


def main():
    app = create_app()
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_ENV', 'development') == 'development'

    print(f"Starting Arena on port {port}...")
    # Live screens hold a connection open per client
    app.run(host='0.0.0.0', port=port, debug=debug, threaded=True)


if __name__ == '__main__':
    main()
