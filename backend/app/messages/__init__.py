"""Message log module for Sharebox.

Text messages and upload notifications are appended to a newline-delimited
JSON log and read back either in full or incrementally ("everything after
timestamp T") by polling clients.
"""
