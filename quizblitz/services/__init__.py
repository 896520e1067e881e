"""Business logic: game engine, scoring, authoring, leaderboards"""
