"""Utility helpers for GitFlower."""
