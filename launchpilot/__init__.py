"""
LaunchPilot Reconciler
----------------------
Keeps video jobs in line with the vendors that render them.

This package contains:
- config: Application configuration
- db: Database connection utilities
- middleware: Cron token guard for the trigger endpoint
- routes/: Flask blueprints for API endpoints
- services/: Job store, vendor clients and the reconciler
"""

__version__ = "1.0.0"

# Convenient imports
from .config import config
from .routes import register_blueprints
