"""
DynamoDB integration.

Count-only queries against the platform tables, plus an in-memory
mock for local development.
"""
