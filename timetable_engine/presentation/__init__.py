"""Presentation layer"""
