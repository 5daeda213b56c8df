"""User accounts, registration, search and the leaderboard."""
