"""Arena Ace backend: esports tournaments, wallet and mini-games."""

__version__ = "1.0.0"
