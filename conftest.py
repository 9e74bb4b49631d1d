"""
Pytest configuration shared by the whole suite.
Environment must be set before any application module is imported.
"""
import os

os.environ["TESTING"] = "True"
os.environ["DEBUG"] = "False"
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("LOG_LEVEL", "WARNING")
