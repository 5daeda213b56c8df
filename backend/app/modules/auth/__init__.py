"""Bearer-token login."""
