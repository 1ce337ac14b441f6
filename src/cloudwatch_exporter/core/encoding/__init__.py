"""Exposition format encoders."""
