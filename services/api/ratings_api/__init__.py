"""Store Ratings API."""
