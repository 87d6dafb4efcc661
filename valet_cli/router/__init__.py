"""Site resolution and dispatch for the router application."""
