"""
Core dashboard logic.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
or any infrastructure concerns. This separation means we can test the
paging and history logic in isolation against in-memory fakes.
"""
