"""Work Tracker package.

Personal time tracking organized by feature modules (projects, sessions,
stats, transfer) with a thin Flask controller layer on top of service and
repository layers.
"""
