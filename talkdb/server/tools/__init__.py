"""
Operator tools for TalkDB.
"""
