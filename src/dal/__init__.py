"""Data Abstraction Layer (DAL) for the MariaDB gateway.

This package owns pooled MariaDB sessions, result normalization and the
classification of driver errors.
"""
