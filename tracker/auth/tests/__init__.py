"""Tests for :mod:`tracker.auth`."""
