"""
Web — FastAPI surface over cart, checkout, orders and the admin panel.

    from turnstile.web import create_app

    app = create_app(Settings.from_env())
"""

from turnstile.web._app import Session, create_app, get_session

app = create_app

__all__ = ("Session", "create_app", "get_session", "app")
