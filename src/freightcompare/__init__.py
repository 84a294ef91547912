"""Freight quote computation and ranking engine."""
