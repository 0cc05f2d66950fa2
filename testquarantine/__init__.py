"""Test result archiving with quarantine of known-flaky tests."""

__version__ = '0.1.0'
