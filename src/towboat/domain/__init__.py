"""Domain layer — tag sections and the error taxonomy.

This layer depends only on the stdlib.
It must never touch the filesystem: callers hand it text, not paths.
"""
