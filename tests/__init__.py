"""Tests for the vcenter_assessment package."""
