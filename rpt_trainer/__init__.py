"""Reverse Pyramid Training workout tracker.

The active session engine lives in :mod:`rpt_trainer.services.session_service`;
persistence is reached through the repositories in
:mod:`rpt_trainer.repositories`.
"""

__version__ = "0.1.0"
