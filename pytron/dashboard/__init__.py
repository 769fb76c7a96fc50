"""
pyTron dashboard: FastAPI application exposing the tracker as JSON
"""

from .app import create_app, run_dashboard

__all__ = ['create_app', 'run_dashboard']
