"""
CertiAI backend.

FastAPI app (see `main.py`) die gebruikersaccounts beheert en
certificaat-echtheidscontroles doorzet naar een externe ML-service.
"""

__version__ = "0.1.0"
