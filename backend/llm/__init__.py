"""
Model binding: chat-completions client and prompt templates.
"""
