"""HTTP surface for the pod server."""
