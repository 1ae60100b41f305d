"""
Object storage integration for meme media.

Lists uploads under a prefix page by page and signs read URLs.
Includes mock mode for local development without credentials.
"""
