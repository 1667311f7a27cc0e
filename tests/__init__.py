"""Tests - table arithmetization test suite."""
