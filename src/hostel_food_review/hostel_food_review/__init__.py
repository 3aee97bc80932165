"""Hostel Food Review package.

Organized by feature modules (users, checkins, menus, reviews, ...) with a
thin Flask controller layer over service and repository layers.
"""
