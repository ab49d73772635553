"""Pipeline orchestration, gating and artifact generation."""
