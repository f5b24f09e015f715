"""Seller dashboard HTTP service."""
