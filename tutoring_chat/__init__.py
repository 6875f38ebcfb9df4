"""Realtime messaging gateway for the tutoring marketplace."""
