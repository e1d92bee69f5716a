"""
QIA - Quality Intelligence Agent.

Executes generated Playwright tests, classifies failures and heals brittle locators.
"""

__version__ = "0.1.0"
