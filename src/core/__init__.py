"""Core domain package for autoreact.

Core contains classification, rate governance, reaction strategies and the
client lifecycle without any Telegram-specific code, keeping the dispatch
logic portable.
"""
