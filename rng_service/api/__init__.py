"""HTTP routes and response schemas."""
