"""Version specs and resolution."""
