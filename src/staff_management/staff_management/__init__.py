"""Staff Management package.

This package is organized by feature modules (users, attendance, shifts,
tasks, verification, alerts, performance) with a thin Flask controller layer
over service and repository layers.
"""
