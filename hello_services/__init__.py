"""Two standalone greeting services, A and B, each with a health endpoint."""
