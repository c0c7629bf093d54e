"""Configuration, logging and credential helpers."""
