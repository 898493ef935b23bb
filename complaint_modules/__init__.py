"""complaint_modules package
Letter generation, complaint storage and speech helpers for the intake app.
"""
from . import ai_client, config, errors, eventlog, generator, languages, models, speech, store

__all__ = [
    "ai_client",
    "config",
    "errors",
    "eventlog",
    "generator",
    "languages",
    "models",
    "speech",
    "store",
]
