"""Core shared components."""
