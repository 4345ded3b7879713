"""Pydantic schemas for Insight Service."""
