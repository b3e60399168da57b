"""Cardquest registration backend."""
