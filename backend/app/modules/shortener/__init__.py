"""URL shortener: short codes, redirects and click counting."""
