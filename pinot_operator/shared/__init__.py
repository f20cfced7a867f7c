"""Shared settings, logging and error definitions for the Pinot operator."""
