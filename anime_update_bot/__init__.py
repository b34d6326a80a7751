"""Anime Update Bot: polls the ani.gamer.com.tw timeline and posts new episodes to Telegram."""

__version__ = "1.0.0"
