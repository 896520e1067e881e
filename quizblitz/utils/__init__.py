"""Prompt building and LLM response parsing"""
