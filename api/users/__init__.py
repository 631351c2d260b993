"""
User directory feature: CRUD over the `users` collection plus the age and
proximity queries.
"""
