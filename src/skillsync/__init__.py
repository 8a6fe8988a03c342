"""skills-sync — keep a local skills directory in line with skills-lock.json."""

__version__ = "0.3.0"
