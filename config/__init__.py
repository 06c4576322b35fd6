"""Runtime configuration for the video feed."""
