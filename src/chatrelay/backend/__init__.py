"""Session orchestration backend for chatrelay"""
