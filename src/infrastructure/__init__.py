"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- auth: JWT bearer-token validation
- database: SQLite persistence for video records
- media: FFprobe/FFmpeg child processes
- staging: Scratch files for uploads in flight
- storage: Object storage (S3, local disk, in-memory) and URL resolution

These wrappers translate between external formats and our domain models.
"""
