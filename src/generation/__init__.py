"""
Reply drafting for ReplyDesk.

- Template Engine: {{variable}} interpolation of response templates
- Response Generator: LLM-backed reply drafts
- Draft Session: editable draft state with last-write-wins regeneration
"""
