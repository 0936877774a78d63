"""Service layer for feeds, media, trends and social actions."""
