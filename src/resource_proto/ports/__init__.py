"""Ports: the interfaces the core offers and the ones it relies on."""
