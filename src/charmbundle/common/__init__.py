"""Code shared by the bundle package and the command line tools."""

__author__ = "ft"
