"""Standalone maintenance scripts."""
