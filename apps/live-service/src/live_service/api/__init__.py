"""HTTP surface of the live service (MediaMTX hook receivers)."""
