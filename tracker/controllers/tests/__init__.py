"""Tests for :mod:`tracker.controllers`."""
