"""Command-line interface for chatrelay"""
