"""Dispatch layer: the mediator entry points and notification publishers.

Dispatch may import from domain, pipeline, registration, and config.
"""
