"""
Networking Tracker - Personal CRM for professional networking.

This package provides tools for tracking contacts and meetings,
generating templated outreach emails, and scheduling follow-up
reminders based on how well you know each contact.
"""

__version__ = "0.1.0"
