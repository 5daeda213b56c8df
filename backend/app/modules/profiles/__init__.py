"""Public profile pages, profile editing and theming."""
