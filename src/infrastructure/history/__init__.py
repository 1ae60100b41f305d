"""
Local persistence for the meme count trend series.
"""
