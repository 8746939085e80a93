"""
Combat tracker package.

A combat resolution engine for tabletop role-playing games: initiative
ordering under several conventions, damage and healing against hit points
and temporary hit points, death saves, concentration, and the turn clock.
"""
