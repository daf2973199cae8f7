"""
Review-response lifecycle.

Review status state machine and the response store coordinator that
enforces draft/posted rules.
"""
