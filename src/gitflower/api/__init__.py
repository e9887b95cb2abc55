"""Web interface for GitFlower."""
