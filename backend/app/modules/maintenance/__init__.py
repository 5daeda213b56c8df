"""Site-wide maintenance mode and schema maintenance tools."""
