"""Core orchestration: model gateway, translation and chat pipeline."""
