"""E-football league backend: teams, fixtures, result approval and standings."""
