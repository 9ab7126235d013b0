"""Tests for :mod:`tracker`."""
