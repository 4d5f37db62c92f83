"""Test suite for bcn_presupuesto."""
