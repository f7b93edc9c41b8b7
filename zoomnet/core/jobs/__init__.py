"""Integration jobs exercised by the test harness, and their registry."""
