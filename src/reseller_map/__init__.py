"""Reseller map: address resolution pipeline for the reseller map."""
