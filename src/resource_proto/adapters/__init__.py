"""Adapters connecting the resource prototype core to the outside world."""
