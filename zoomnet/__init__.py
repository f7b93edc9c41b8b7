"""zoomnet: async Zoom REST API client with a concurrent integration-test harness."""
