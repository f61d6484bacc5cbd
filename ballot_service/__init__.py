"""Single-ballot voting service: candidate registry, one vote per identity, fixed deadline."""

__version__ = '1.0.0'
