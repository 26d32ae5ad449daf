"""Vaffaschool: find Italian schools by approximate name and city."""

__version__ = "0.1.0"
