"""Blend fields, compositing and hair overlay."""
