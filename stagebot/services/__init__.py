"""Promotion services: eligibility, merge sequencing, sync PR reconciliation."""
