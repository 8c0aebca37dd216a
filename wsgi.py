"""
WSGI entry point for production deployment

    gunicorn -w 4 -b 0.0.0.0:8000 wsgi:application

The config class comes from FLASK_ENV (production refuses the default
SECRET_KEY).
"""
import os

from medibook import create_app

application = create_app(os.getenv('FLASK_ENV', 'production'))
