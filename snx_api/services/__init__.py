"""Long-lived services: container wiring, health check and background refresh."""
