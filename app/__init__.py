"""pairchat backend application."""
