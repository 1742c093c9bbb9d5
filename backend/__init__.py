"""ParkPal backend: parking location, timer and premium subscription API."""
