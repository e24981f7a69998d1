"""Configuration, logging, errors and task helpers shared by all layers."""
