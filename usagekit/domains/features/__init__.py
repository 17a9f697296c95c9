"""Features domain: feature definitions, plan overrides and effective-feature resolution.

Features are registered once at configuration time. FeatureResolver merges a
base feature with a plan override and a customer override, in that order.
"""
