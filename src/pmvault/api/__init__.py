"""REST API for pmvault."""
