"""
Property Indexer - Property-Based Testing Suite

Property-based testing using Hypothesis to discover edge cases and invariants
in content identifier derivation and aggregate replay.
"""
