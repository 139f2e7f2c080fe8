"""Shift-Bookk scheduling backend.

This package is organized by feature modules (shifts, requests, notifications, ...)
with a thin Flask controller layer and service/repository layers underneath.
"""
