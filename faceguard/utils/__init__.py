"""Config, logging, geometry and image helpers."""
