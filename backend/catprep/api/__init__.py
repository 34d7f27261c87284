"""HTTP endpoints for authentication."""
