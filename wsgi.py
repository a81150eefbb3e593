#!/usr/bin/env python3
"""
WSGI entry point for the School Journal API (wsgi:app).
Run directly for a local development server.
"""

from app import create_app

app = create_app()

if __name__ == "__main__":
    # Debug is controlled from config.py
    app.run(debug=app.config.get('DEBUG', False))
