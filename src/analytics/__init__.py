"""
Analytics for ReplyDesk.

Filter evaluation over review collections and aggregation into
analytics snapshots.
"""
