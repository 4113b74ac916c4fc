"""Serialization of swarm output."""
