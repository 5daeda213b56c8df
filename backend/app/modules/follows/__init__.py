"""Follow graph between users."""
