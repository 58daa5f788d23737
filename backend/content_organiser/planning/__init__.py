"""
Derived views over content items: production timeline, stage board, calendar grid.

Everything here is a pure function of the items passed in; nothing is cached.
"""
