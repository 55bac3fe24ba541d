"""Candidate onboarding session orchestrator."""
