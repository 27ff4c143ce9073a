"""
Core business logic for video hosting.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
or any infrastructure concerns. This separation means we can test the
ingestion pipeline in isolation and swap frameworks if needed.
"""
