"""Prompt builders.  Each returns a ``(system_prompt, user_prompt)`` tuple."""
