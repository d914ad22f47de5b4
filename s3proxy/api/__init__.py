"""HTTP interface for the gateway."""
