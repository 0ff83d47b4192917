"""Application layer: services coordinating core and boundary components."""
