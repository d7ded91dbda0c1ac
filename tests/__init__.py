"""
Test suite for the Coffee Diary application.

This package contains:
- Unit tests for models and services
- API endpoint tests
- Integration tests for complete user workflows
- Property-based tests
"""
