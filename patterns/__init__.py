"""Reusable building blocks for tenant-scoped services.

Each module is a self-contained pattern the tracker specialises: a
pure-function rules engine, a tenant-bound repository base, and frozen
domain configuration.
"""
