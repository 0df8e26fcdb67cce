"""Wander API: gamification ledger and eligibility engine."""
