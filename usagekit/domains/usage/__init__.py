"""Usage domain: reset scheduling, the usage ledger and consumption.

UsageService is the entry point for transports: consume, check, sync, and
customer registration. UsageLedger owns the per-stream read-modify-write.
"""
