"""Test suite for formstate.

This package contains tests for:
- Path access (get/set/delete, bracket normalization, pruning)
- Checkbox value derivation
- Validation adapter and the JSON Schema backed schema
- Event system and change scheduling
- FormStore mutations, validation, submission and reset
- Integration scenarios (validate on change/blur/submit, concurrent edits)
"""
