"""Settings, error taxonomy and password hashing"""
