"""Pydantic models for stored entities, store commands and API payloads"""
