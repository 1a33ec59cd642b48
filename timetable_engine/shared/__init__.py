"""Shared helpers used across layers"""
