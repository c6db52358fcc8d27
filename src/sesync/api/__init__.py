"""HTTP clients for the remote energy data APIs."""
