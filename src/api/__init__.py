"""HTTP entry points for the grade service."""
