"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: Object storage (S3) for meme media
- dynamo: DynamoDB row counts
- history: Local persistence for the trend series

These wrappers translate between external formats and our domain models.
"""
