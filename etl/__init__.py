"""Scheduled jobs and logging setup for the pod server."""
