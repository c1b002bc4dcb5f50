"""Face geometry, detection and prompt text."""
