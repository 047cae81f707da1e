"""Deployment bundle verification tools."""

__author__ = "ft"
