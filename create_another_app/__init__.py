"""create-another-app: scaffold full-stack web applications.

Generates React/Vite or Next.js frontends and Express backends (JavaScript or
TypeScript, optionally backed by MongoDB or PostgreSQL) from a small set of
choices.
"""

__version__ = "1.0.0"
