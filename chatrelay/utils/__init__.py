"""Utility helpers for the chatrelay framework."""
