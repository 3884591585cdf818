"""Packaged growth reference data (generated by scripts/build_reference_data.py)."""
