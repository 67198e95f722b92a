"""HTTP surface for the candidate dashboard and interview screen."""
