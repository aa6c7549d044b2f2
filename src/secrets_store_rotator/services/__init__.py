"""Clients for the systems the rotation controller talks to."""
