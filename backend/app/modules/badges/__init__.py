"""Badge catalog, admin assignment and automatic awards."""
