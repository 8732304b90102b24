"""Workforce attendance package.

Organized by feature modules (attendance, shifts, reports) with a thin Flask
controller layer on top of service/repository layers.
"""
