"""Browser automation services for wplookup."""
