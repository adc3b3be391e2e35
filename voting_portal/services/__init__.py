"""Voting domain services."""
