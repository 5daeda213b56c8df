"""Links module: Linktree-style profile links, click tracking and analytics."""
