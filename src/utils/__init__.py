"""
Utility modules for ReplyDesk.

Cross-cutting concerns:
- Storage: JSON-file backed review/response store
- Completion: Gemini text-generation client
- Timestamps: UTC parsing and formatting helpers
"""
