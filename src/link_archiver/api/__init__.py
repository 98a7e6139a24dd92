"""HTTP API exposing archive resolution to out-of-process callers."""
