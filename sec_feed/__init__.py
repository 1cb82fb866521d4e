"""Track a security advisory feed and render entries matching keyword filters."""
