"""Application layer: plan payloads and editing sessions."""
