"""GhostArchive snapshot provider (direct video lookup + search scrape)."""
