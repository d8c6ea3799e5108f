"""Tests for the SCADA device backend."""
