"""HTTP API for the SlotBook booking core."""
