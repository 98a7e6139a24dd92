"""Domain primitives shared by the resolver, providers and API."""
